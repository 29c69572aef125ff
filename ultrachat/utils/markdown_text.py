"""
Markdown to styled text runs

Replies are parsed with mistune into its AST and flattened into
(text, tags) runs that a Tk text widget can insert directly. Tags used:
bold, italic, strike, code, code_block, h1-h3, quote, link, rule.
"""
from typing import List, Tuple
import mistune

Segment = Tuple[str, Tuple[str, ...]]

_parse = mistune.create_markdown(renderer="ast", plugins=["strikethrough"])

_INLINE_TAGS = {
    "strong": "bold",
    "emphasis": "italic",
    "strikethrough": "strike",
    "link": "link",
}

BULLET = "• "
LIST_INDENT = "    "


class _SegmentWriter:
    """Collects runs; block gaps are only emitted between content"""

    def __init__(self):
        self.segments: List[Segment] = []
        self._gap = ""

    def separate(self, gap: str):
        if len(gap) > len(self._gap):
            self._gap = gap

    def write(self, text: str, tags: Tuple[str, ...] = ()):
        if not text:
            return
        if self._gap:
            if self.segments:
                self.segments.append((self._gap, ()))
            self._gap = ""
        self.segments.append((text, tags))


def to_segments(text: str) -> List[Segment]:
    """
    Convert markdown into styled text runs

    Args:
        text: Markdown source; partial input from a stream is fine

    Returns:
        List of (text, tags) with adjacent runs of equal tags merged
    """
    writer = _SegmentWriter()
    _render_blocks(_parse(text or ""), writer, ())
    return _merge(writer.segments)


def plain_text(text: str) -> str:
    """Markdown with formatting markers removed"""
    return "".join(run for run, _ in to_segments(text))


def _with(tags: Tuple[str, ...], tag: str) -> Tuple[str, ...]:
    return tags if tag in tags else tags + (tag,)


def _render_blocks(tokens, writer: _SegmentWriter, tags, gap="\n\n", indent=""):
    for token in tokens:
        kind = token["type"]
        if kind == "blank_line":
            continue

        writer.separate(gap)

        if kind in ("paragraph", "block_text"):
            _render_inline(token.get("children", []), writer, tags)

        elif kind == "heading":
            level = min(token.get("attrs", {}).get("level", 1), 3)
            _render_inline(token.get("children", []), writer, _with(tags, f"h{level}"))

        elif kind == "block_code":
            writer.write(token.get("raw", "").rstrip("\n"), _with(tags, "code_block"))

        elif kind == "block_quote":
            _render_blocks(token.get("children", []), writer, _with(tags, "quote"), gap, indent)

        elif kind == "list":
            _render_list(token, writer, tags, indent)

        elif kind == "thematic_break":
            writer.write("―" * 24, _with(tags, "rule"))

        elif "children" in token:
            _render_blocks(token["children"], writer, tags, gap, indent)

        else:
            writer.write(token.get("raw", "").strip("\n"), tags)


def _render_list(token, writer: _SegmentWriter, tags, indent: str):
    attrs = token.get("attrs", {})
    ordered = attrs.get("ordered", False)
    number = attrs.get("start", 1)

    for item in token.get("children", []):
        writer.separate("\n")
        writer.write(indent + (f"{number}. " if ordered else BULLET), tags)
        number += 1

        for position, child in enumerate(item.get("children", [])):
            if child["type"] == "list":
                writer.separate("\n")
                _render_list(child, writer, tags, indent + LIST_INDENT)
            elif child["type"] in ("block_text", "paragraph"):
                if position:
                    writer.separate("\n")
                    writer.write(indent + LIST_INDENT, tags)
                _render_inline(child.get("children", []), writer, tags)
            else:
                _render_blocks([child], writer, tags, "\n", indent + LIST_INDENT)


def _render_inline(tokens, writer: _SegmentWriter, tags):
    for token in tokens:
        kind = token["type"]

        if kind == "text":
            writer.write(token.get("raw", ""), tags)
        elif kind == "codespan":
            writer.write(token.get("raw", ""), _with(tags, "code"))
        elif kind in ("softbreak", "linebreak"):
            # Model output uses single newlines as real line breaks
            writer.write("\n", tags)
        elif kind in _INLINE_TAGS:
            _render_inline(token.get("children", []), writer, _with(tags, _INLINE_TAGS[kind]))
        elif "children" in token:
            _render_inline(token["children"], writer, tags)
        else:
            writer.write(token.get("raw", ""), tags)


def _merge(segments: List[Segment]) -> List[Segment]:
    merged: List[Segment] = []
    for text, tags in segments:
        if merged and merged[-1][1] == tags:
            merged[-1] = (merged[-1][0] + text, tags)
        else:
            merged.append((text, tags))
    return merged
