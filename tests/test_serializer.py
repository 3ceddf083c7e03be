"""Tests for the serializer module."""

from bibround.model import (
    BibliographyDocument,
    Entry,
    FieldKind,
    LiteralAuthor,
    PersonName,
    RawValue,
    StringVariable,
)
from bibround.resolver import resolve
from bibround.scanner import parse, parse_value_text
from bibround.serializer import serialize, serialize_variable


def test_serialize_simple_entry():
    """Test the exact layout of a serialized entry."""
    text = "@article{k1, author = {Smith, John and Doe, Jane}, year = {2020}}"

    assert serialize(resolve(parse(text))) == (
        "@article{k1,\n"
        "  author = {Smith, John and Doe, Jane},\n"
        "  year = {2020}\n"
        "}\n\n"
    )


def test_variable_author_is_written_bare():
    """Test a single variable author is not turned into a quoted literal."""
    output = serialize(resolve(parse('@string{me = "Smith, John"}\n@article{k1, author = me}')))

    assert output == (
        '@string{me = "Smith, John"}\n\n'
        "@article{k1,\n"
        "  author = me\n"
        "}\n\n"
    )


def test_mixed_authors_keep_concatenation():
    """Test one variable author forces the '#' form for the whole field."""
    text = '@string{me = "Smith, John"}\n@article{k1, author = me # " and " # "Doe, Jane"}'

    output = serialize(resolve(parse(text)))

    assert '  author = me # " and " # "Doe, Jane"\n' in output


def test_authors_are_normalized_on_output():
    """Test 'First Last' names are written as 'Last, First'."""
    output = serialize(resolve(parse("@misc{k, author = {John Smith and {Acme Corp}}}")))

    assert "  author = {Smith, John and {Acme Corp}}\n" in output


def test_inherited_fields_are_not_written():
    """Test crossref inheritance does not leak into the output."""
    text = "@book{k1, publisher = {ACME}}\n@inproceedings{k2, crossref = {k1}, title = {Paper}}"

    output = serialize(resolve(parse(text)))

    assert output.count("publisher") == 1
    assert "@inproceedings{k2,\n  crossref = {k1},\n  title = {Paper}\n}\n" in output


def test_value_forms():
    """Test bare tokens, quoted literals and concatenations."""
    text = (
        '@misc{k, month = jan, year = 2020, title = "Quoted", '
        'note = "A " # var, pages = {1--2}}'
    )

    output = serialize(parse(text))

    assert output == (
        "@misc{k,\n"
        "  month = jan,\n"
        "  year = 2020,\n"
        "  title = {Quoted},\n"
        '  note = "A " # var,\n'
        "  pages = {1--2}\n"
        "}\n\n"
    )


def test_quoted_literal_with_unbalanced_brace_stays_quoted():
    """Test a quoted value that cannot be braced keeps its quotes."""
    entry = Entry("misc", "k")
    entry.set_field("note", parse_value_text('"a { b"'))

    output = serialize(BibliographyDocument(entries=[entry]))

    assert '  note = "a { b"\n' in output


def test_entry_without_fields():
    """Test an entry with only a key."""
    assert serialize(parse("@misc{lonely,}")) == "@misc{lonely,\n}\n\n"


def test_unresolved_document_writes_raw_author():
    """Test serializing straight after parsing keeps the raw author text."""
    output = serialize(parse("@misc{k, author = {John Smith}}"))

    assert "  author = {John Smith}\n" in output


def test_serialize_variable_quoting():
    """Test variable values containing quotes fall back to braces."""
    assert serialize_variable("pub", "ACME") == '@string{pub = "ACME"}\n\n'
    assert serialize_variable("q", 'say "hi"') == '@string{q = {say "hi"}}\n\n'
    assert serialize_variable("dir", "C:\\") == "@string{dir = {C:\\}}\n\n"


def test_variable_ending_in_backslash_survives_round_trip():
    """Test a trailing backslash does not escape the closing delimiter."""
    first = resolve(parse("@string{dir = {C:\\}}\n@misc{k, note = dir}"))

    second = resolve(parse(serialize(first)))

    assert first.entries[0].resolved("note") == "C:\\"
    assert second.variable_values() == {"dir": "C:\\"}
    assert second.entries[0].resolved("note") == "C:\\"
    assert second.diagnostics == []


def test_serialize_built_document():
    """Test serializing a document built without parsing."""
    entry = Entry("Book", "NewKey")
    entry.set_field("Title", RawValue.literal("Fresh"))
    entry.set_field("author", RawValue.literal("ignored"))
    entry.authors = [LiteralAuthor("me"), PersonName("Doe", "Jane")]
    document = BibliographyDocument(
        entries=[entry],
        variables={"me": StringVariable("ME", "Smith, John")},
    )

    assert entry.fields["author"].kind is FieldKind.AUTHOR
    assert serialize(document) == (
        '@string{me = "Smith, John"}\n\n'
        "@book{NewKey,\n"
        "  title = {Fresh},\n"
        '  author = me # " and " # "Doe, Jane"\n'
        "}\n\n"
    )
