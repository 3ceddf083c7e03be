"""BibTeX parsing, resolution and round-trip serialization."""

import logging

from .resolver import resolve
from .scanner import parse, scan
from .serializer import serialize

# Install a NullHandler to avoid emitting logs unless the application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ["parse", "resolve", "scan", "serialize"]
