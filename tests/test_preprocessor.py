import pytest

from html_structure.exceptions import StructuralParseError
from html_structure.preprocessor import Preprocessor, document_element, parse_html


@pytest.mark.parametrize("head, expected", [
    (b'<html><head><meta charset="utf-8"></head>', "utf-8"),
    (b"<meta charset='ISO-8859-1'>", "windows-1252"),
    (b'<meta http-equiv="Content-Type" content="text/html; charset=Shift_JIS">', "shift_jis"),
    (b"<html><head><title>none</title></head>", "utf-8"),
    (b'<meta charset="no-such-charset">', "utf-8"),
])
def test_detect_charset_from_bytes(head, expected):
    assert Preprocessor.detect_charset_from_bytes(head) == expected


def test_sanitize_removes_nulls_and_control_chars():
    html, warnings = Preprocessor().sanitize("<p>a\x00b\x07c\r\nd\re</p>")

    assert html == "<p>abc\nd\ne</p>"
    assert warnings == ["Removed NULL bytes", "Removed control characters"]


def test_sanitize_clean_input_has_no_warnings():
    html, warnings = Preprocessor().sanitize("<p>fine\ttext</p>")
    assert html == "<p>fine\ttext</p>"
    assert warnings == []


@pytest.mark.parametrize("html", ["", "   \n\t "])
def test_blank_html_raises(html):
    with pytest.raises(StructuralParseError):
        Preprocessor().parse(html)


def test_parse_returns_html_element():
    root = parse_html("<p>fragment only</p>")

    assert root.name == "html"
    assert root.find("p").get_text() == "fragment only"


def test_parse_bytes_uses_declared_charset():
    raw = '<html><head><meta charset="iso-8859-1"></head><body><p>café</p></body></html>'.encode("latin-1")
    root = Preprocessor().parse_bytes(raw)

    assert root.find("p").get_text() == "café"


def test_document_element_skips_doctype():
    soup = Preprocessor().parse_document("<!DOCTYPE html><html><body>x</body></html>")
    assert document_element(soup).name == "html"
