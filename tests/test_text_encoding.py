import codecs

import pytest

from marktree.text_encoding import decode_document, detect_encoding, sniff_bom

DOC = '<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset={}"><DL><p></DL>'


@pytest.mark.parametrize(
    "bom,expected",
    [
        (codecs.BOM_UTF32_BE, "utf-32-be"),
        (codecs.BOM_UTF32_LE, "utf-32-le"),
        (codecs.BOM_UTF16_BE, "utf-16-be"),
        (codecs.BOM_UTF16_LE, "utf-16-le"),
        (codecs.BOM_UTF8, "utf-8-sig"),
        (b"+/v8-", "utf-7"),
    ],
)
def test_bom_wins(bom, expected):
    assert sniff_bom(bom + b"<") == expected
    # A conflicting charset declaration is ignored.
    assert detect_encoding(bom + DOC.format("windows-1257").encode("ascii")) == expected


def test_charset_declaration():
    assert detect_encoding(DOC.format("windows-1257").encode("ascii")) == "cp1257"
    assert detect_encoding(DOC.format("ISO-8859-2").encode("ascii")) == "iso8859-2"


def test_no_declaration_defaults_to_utf8():
    assert detect_encoding(b"<DL><p></DL>") == "utf-8"
    assert detect_encoding(b"") == "utf-8"


def test_zero_byte_heuristic():
    assert detect_encoding("<DL><p></DL>".encode("utf-32-le")) == "utf-32-le"
    assert detect_encoding("<DL><p></DL>".encode("utf-16-le")) == "utf-16-le"


def test_unknown_charset_falls_back_to_utf8():
    assert detect_encoding(DOC.format("FOO-32").encode("ascii")) == "utf-8"


def test_header_window_limits_search():
    data = (" " * 100 + DOC.format("cp1252")).encode("ascii")
    assert detect_encoding(data, header_length=10) == "utf-8"
    assert detect_encoding(data, header_length=0) == "cp1252"
    assert detect_encoding(data) == "cp1252"


def test_decode_document_strips_bom():
    text, enc = decode_document("\ufeff<DL>".encode("utf-16-le"))
    assert enc == "utf-16-le"
    assert text == "<DL>"
