"""Workspace configuration for bibround operations."""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class WorkspaceConfig:
    """Configuration for workspace file paths."""

    bib_path: Path
    export_path: Path
    edits_path: Path

    @classmethod
    def from_workspace(cls, workspace: Path, bib_path: Path | None = None) -> "WorkspaceConfig":
        """Create configuration from workspace root path.

        Args:
            workspace: Path to workspace root directory
            bib_path: Optional bibliography file overriding ``bib/library.bib``

        Returns:
            WorkspaceConfig with standard file paths
        """
        return cls(
            bib_path=bib_path if bib_path is not None else workspace / "bib" / "library.bib",
            export_path=workspace / "bib" / "generated" / "resolved.json",
            edits_path=workspace / "data" / "edits.json",
        )
