"""
DOM provider adapter: raw HTML → BeautifulSoup document element.

The structure engine itself never parses markup; it walks a bs4 tree. This
module is the thin layer that produces one from a string or raw bytes:
- Sniffs the declared charset (WHATWG label mapping) when given bytes
- Applies string-level cleanup that parsers choke on
- Parses with the html5lib → lxml → html.parser fallback chain
- Hands back the <html> element (the root the tree builder expects)

Unclosed tags and misnesting are left to the parser's tree builder; by the
time the engine sees the tree it is assumed repaired.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from .exceptions import StructuralParseError
from .logger import get_module_logger

logger = get_module_logger("preprocessor")

# Control characters other than tab/newline/CR
_CONTROL_CHARS = ''.join(chr(c) for c in range(32) if c not in (9, 10, 13))
_CONTROL_TABLE = str.maketrans('', '', _CONTROL_CHARS)

_META_CHARSET = re.compile(r'<meta[^>]+charset=["\']?\s*([^\s"\';>]+)', re.IGNORECASE)
_META_CONTENT_CHARSET = re.compile(
    r'<meta[^>]+content=["\'][^"\']*charset=([^\s"\';>]+)', re.IGNORECASE
)


class Preprocessor:
    """Turns HTML text into the root element consumed by the tree builder."""

    # WHATWG encoding spec: browsers silently remap these labels.
    # https://encoding.spec.whatwg.org/#names-and-labels
    WHATWG_CHARSET_MAP = {
        'iso-8859-1': 'windows-1252',
        'iso8859-1': 'windows-1252',
        'iso88591': 'windows-1252',
        'latin-1': 'windows-1252',
        'latin1': 'windows-1252',
        'us-ascii': 'windows-1252',
        'ascii': 'windows-1252',
        'iso-8859-9': 'windows-1254',
        'iso-8859-11': 'windows-874',
    }

    # Tried in order; html5lib implements the full WHATWG algorithm
    PARSERS = ('html5lib', 'lxml', 'html.parser')

    @staticmethod
    def detect_charset_from_bytes(raw_bytes: bytes) -> str:
        """
        Detect the declared charset by scanning the first 2048 bytes for
        <meta charset=...> or the http-equiv Content-Type form.

        Returns the browser-equivalent charset, or 'utf-8' when nothing
        usable is declared.
        """
        head_str = raw_bytes[:2048].decode('ascii', errors='ignore')

        m = _META_CHARSET.search(head_str) or _META_CONTENT_CHARSET.search(head_str)
        if not m:
            return 'utf-8'

        charset = m.group(1).strip().lower()
        charset = Preprocessor.WHATWG_CHARSET_MAP.get(charset, charset)

        try:
            "".encode(charset)
        except LookupError:
            logger.warning(f"Unknown declared charset '{charset}', using utf-8")
            return 'utf-8'
        return charset

    def sanitize(self, html: str) -> tuple[str, list[str]]:
        """
        String-level cleanup before parsing.

        Returns:
            Tuple of (sanitized HTML, list of warnings)
        """
        warnings = []

        if '\x00' in html:
            html = html.replace('\x00', '')
            warnings.append("Removed NULL bytes")

        html = html.replace('\r\n', '\n').replace('\r', '\n')

        if any(c in html for c in _CONTROL_CHARS):
            html = html.translate(_CONTROL_TABLE)
            warnings.append("Removed control characters")

        return html, warnings

    def parse_document(self, html: str) -> BeautifulSoup:
        """Parse HTML into a BeautifulSoup document, walking the parser fallback chain."""
        if not html or not html.strip():
            raise StructuralParseError("Empty or blank HTML")

        sanitized, warnings = self.sanitize(html)
        for warning in warnings:
            logger.debug(warning)

        last_error: Optional[Exception] = None
        for parser in self.PARSERS:
            try:
                return BeautifulSoup(sanitized, parser)
            except Exception as e:
                # Missing optional parser (bs4.FeatureNotFound) or a parser bug
                logger.warning(f"{parser} parsing failed: {e}")
                last_error = e

        raise StructuralParseError(
            f"HTML parsing failed: {last_error}",
            details={"parsers": list(self.PARSERS)}
        )

    def parse(self, html: str) -> Tag:
        """
        Parse HTML and return its document element.

        Raises:
            StructuralParseError: blank input, or no element came out of parsing
        """
        soup = self.parse_document(html)
        root = document_element(soup)
        if root is None:
            raise StructuralParseError("HTML document has no root element")
        return root

    def parse_bytes(self, raw_bytes: bytes) -> Tag:
        """Decode raw bytes with the declared charset, then parse."""
        charset = self.detect_charset_from_bytes(raw_bytes)
        return self.parse(raw_bytes.decode(charset, errors='replace'))


def document_element(soup: BeautifulSoup) -> Optional[Tag]:
    """First element child of a document (normally <html>)."""
    for child in soup.children:
        if isinstance(child, Tag):
            return child
    return None


def parse_html(html: str) -> Tag:
    """Convenience function to parse HTML into a root element."""
    return Preprocessor().parse(html)
