"""Input validation and sanitization for resource names.

``validate_name`` raises ``ValueError`` on invalid input so callers can
translate to HTTP 400 at the API boundary. ``strip_markup`` reduces any
HTML to escaped text and never fails.
"""

from __future__ import annotations

import html
from html.parser import HTMLParser

from .kinds import ResourceKind

PRINTABLE_ASCII = frozenset(chr(c) for c in range(0x20, 0x7F))

# Elements whose content is dropped along with the tags.
_DROPPED_CONTENT_TAGS = frozenset({"script", "style"})


def validate_name(name: str, kind: ResourceKind) -> str:
    """Check a raw name against the rules of ``kind`` and return it.

    Raises:
        ValueError: on empty, non-printable-ASCII, too short, too long or
            forbidden-character input.
    """
    if not name:
        raise ValueError("name is required")

    bad = sorted({c for c in name if c not in PRINTABLE_ASCII})
    if bad:
        raise ValueError(f"name contains non-printable-ASCII characters: {bad!r}")

    if len(name) < kind.min_name_length:
        raise ValueError(f"name must be at least {kind.min_name_length} characters")

    if kind.max_name_length is not None and len(name) > kind.max_name_length:
        raise ValueError(f"name exceeds {kind.max_name_length} characters")

    forbidden = sorted({c for c in name if c in kind.forbidden_chars})
    if forbidden:
        raise ValueError(f"name contains disallowed characters: {forbidden!r}")

    return name


class _MarkupStripper(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.text_chunks: list[str] = []
        self._dropped_depth = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag.lower() in _DROPPED_CONTENT_TAGS:
            self._dropped_depth += 1

    def handle_endtag(self, tag: str) -> None:
        if tag.lower() in _DROPPED_CONTENT_TAGS and self._dropped_depth:
            self._dropped_depth -= 1

    def handle_data(self, data: str) -> None:
        if not self._dropped_depth:
            self.text_chunks.append(data)


def strip_markup(value: str) -> str:
    """Remove every tag, comment and declaration, keeping the text.

    An unterminated trailing tag is dropped, and the remaining text is
    HTML-escaped so decoded character references cannot turn back into
    markup.
    """
    parser = _MarkupStripper()
    parser.feed(value)
    if parser.rawdata.startswith("<"):
        parser.rawdata = ""
    parser.close()
    return html.escape("".join(parser.text_chunks), quote=False)
