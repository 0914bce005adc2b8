"""Inline edit markup to highlighted Markdown.

Documents may carry lightweight editing marks written by hand or by a
model::

    Jamie stared at a ~~blank~~ +greige+ screen. [FLOW: clarified tone]

``transform_inline_markup`` rewrites those marks into HTML spans the
renderer styles as highlights. The output is still Markdown: fenced code
blocks are copied untouched and inline code spans are only escaped.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable

__all__ = ["HighlightType", "escape_html", "transform_inline_markup"]


class HighlightType(str, Enum):
    """Highlight flavours understood by the stylesheet."""

    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    ANNOTATION = "annotation"
    STAR = "star"


HIGHLIGHT_CLASS = "writersroom-highlight"
NOTE_CLASS = "writersroom-inline-note"
BLOCK_CLASS = "writersroom-highlight-block"

_HTML_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)
_ESCAPABLE = frozenset("+~[]\\")
_PRAISE_TAGS = frozenset({"star", "praise"})

_FENCE = re.compile(r"^\s*(`{3,}|~{3,})")
_NOTE = re.compile(r"^\s*([A-Za-z][A-Za-z0-9 _-]{0,30})\s*:\s*(.+?)\s*\Z", re.DOTALL)
_MARKDOWN_CONTROL = re.compile(r"^(\s*[-*+]\s+|\s*>|\s*#)")
_PRAISE_LINE = re.compile(r"^(?:\u2705|\u2b50|\U0001f31f)\ufe0f?\s+")


def escape_html(value: str) -> str:
    return value.translate(_HTML_ESCAPES)


def _span(kind: HighlightType, inner_html: str, extra_classes: Iterable[str] = ()) -> str:
    classes = " ".join([HIGHLIGHT_CLASS, *extra_classes])
    return f'<span class="{classes}" data-wr-type="{kind.value}">{inner_html}</span>'


def _find_unescaped(haystack: str, needle: str, start: int) -> int:
    """Return the next index of ``needle`` not preceded by a backslash."""
    index = haystack.find(needle, start)
    while index != -1:
        if index == 0 or haystack[index - 1] != "\\":
            return index
        index = haystack.find(needle, index + len(needle))
    return -1


def _closes_on_line(segment: str, needle: str, start: int) -> int:
    end = _find_unescaped(segment, needle, start)
    if end == -1:
        return -1
    newline = segment.find("\n", start)
    if newline != -1 and newline < end:
        return -1
    return end


def _transform_segment(segment: str) -> str:
    """Rewrite the markers of a segment that contains no code spans."""
    out: list[str] = []
    i = 0
    length = len(segment)

    while i < length:
        char = segment[i]

        if char == "\\" and i + 1 < length:
            following = segment[i + 1]
            if following in _ESCAPABLE:
                out.append(escape_html(following))
                i += 2
            else:
                out.append(escape_html(char))
                i += 1
            continue

        if segment.startswith("~~", i):
            end = _find_unescaped(segment, "~~", i + 2)
            if end != -1:
                deleted = f"<del>{escape_html(segment[i + 2 : end])}</del>"
                out.append(_span(HighlightType.SUBTRACTION, deleted))
                i = end + 2
                continue

        if char == "+":
            end = _closes_on_line(segment, "+", i + 1)
            if end > i + 1:
                out.append(_span(HighlightType.ADDITION, escape_html(segment[i + 1 : end])))
                i = end + 1
                continue

        if char == "[":
            end = _closes_on_line(segment, "]", i + 1)
            if end != -1:
                match = _NOTE.match(segment[i + 1 : end])
                if match:
                    tag = match.group(1).strip()
                    kind = HighlightType.STAR if tag.lower() in _PRAISE_TAGS else HighlightType.ANNOTATION
                    note = escape_html(f"[{tag}: {match.group(2).strip()}]")
                    out.append(_span(kind, note, [NOTE_CLASS]))
                    i = end + 1
                    continue

        out.append(escape_html(char))
        i += 1

    return "".join(out)


def _transform_line(line: str, highlight_star_lines: bool) -> str:
    out: list[str] = []
    i = 0
    length = len(line)

    while i < length:
        if line[i] != "`":
            tick = line.find("`", i)
            stop = length if tick == -1 else tick
            out.append(_transform_segment(line[i:stop]))
            i = stop
            continue

        run = i
        while run < length and line[run] == "`":
            run += 1
        ticks = line[i:run]
        end = line.find(ticks, run)
        if end == -1:
            # Unterminated code span: scan the rest as prose.
            out.append(_transform_segment(line[i:]))
            break
        out.append(escape_html(line[i : end + len(ticks)]))
        i = end + len(ticks)

    rendered = "".join(out)
    if highlight_star_lines and not _MARKDOWN_CONTROL.match(line):
        if _PRAISE_LINE.match(line.lstrip()):
            return _span(HighlightType.STAR, rendered, [BLOCK_CLASS])
    return rendered


def transform_inline_markup(source: str, *, highlight_star_lines: bool = True) -> str:
    """Convert inline edit markup in ``source`` into highlight spans.

    - ``~~deleted~~`` becomes a subtraction highlight with strikethrough.
    - ``+inserted+`` becomes an addition highlight (single line only).
    - ``[TAG: note]`` becomes an annotation highlight, or a star highlight
      when the tag is ``STAR`` or ``PRAISE``.
    - ``\\+``, ``\\~``, ``\\[``, ``\\]`` and ``\\\\`` emit the character literally.

    Lines starting with a praise glyph (``✅``, ``⭐``, ``🌟``) are wrapped in
    a star block when ``highlight_star_lines`` is set. Line count and fenced
    regions are preserved exactly.
    """
    fence: str | None = None
    rendered: list[str] = []

    for line in source.split("\n"):
        opener = _FENCE.match(line)
        if opener:
            marker = opener.group(1)
            if fence is None:
                fence = marker
            elif marker == fence:
                fence = None
            rendered.append(line)
            continue
        if fence is not None:
            rendered.append(line)
            continue
        rendered.append(_transform_line(line, highlight_star_lines))

    return "\n".join(rendered)
