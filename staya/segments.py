"""Model reply parsing into typed narrative segments.

Line-by-line and purely syntactic, in this order:
  header     `T3｜2024/01/12/Friday｜23:40｜Winter｜Snow❄️｜Cellar🏭`, or any
             backtick-wrapped line; surrounding bold markers are ignored
  dialogue   any line with "|": speaker before the first bar, line after it
  monologue  a line wrapped in one of MONOLOGUE_DELIMITERS (single *, not **)
  narration  everything else

Empty lines produce no segment but start a new paragraph. Nothing is ever
rejected: a line that honours no convention becomes narration.
"""

import re

from staya.conventions import (
    DIALOGUE_SEPARATOR,
    HEADER_FIELDS,
    MONOLOGUE_DELIMITERS,
)
from staya.models import Dialogue, Header, Monologue, Narration, NarrativeSegment

_HEADER_RE = re.compile(r"^T\s*(\d+|\?)\s*[｜|](.*)$")
_FIELD_SPLIT_RE = re.compile(r"[｜|]")
_EMPHASIS = "*_ "
_BOLD_MARKERS = ("**", "__")


def _strip_bold(stripped: str) -> str:
    """Remove emphasis markers wrapping the whole line, e.g. **`T3｜...`**."""
    changed = True
    while changed:
        changed = False
        for marker in _BOLD_MARKERS:
            if (
                len(stripped) > 2 * len(marker)
                and stripped.startswith(marker)
                and stripped.endswith(marker)
            ):
                stripped = stripped[len(marker):-len(marker)].strip()
                changed = True
    return stripped


def _parse_header(stripped: str, paragraph: int) -> Header | None:
    text = _strip_bold(stripped)
    wrapped = len(text) > 2 and text.startswith("`") and text.endswith("`")
    if wrapped:
        text = text.strip("`").strip()

    match = _HEADER_RE.match(text)
    if match:
        turn, rest = match.group(1), match.group(2)
    elif wrapped and text:
        # any backtick-wrapped line is a header, tagged with a turn or not
        turn, rest = "", text
    else:
        return None

    fields = {}
    if match or _FIELD_SPLIT_RE.search(rest):
        values = [f.strip() for f in _FIELD_SPLIT_RE.split(rest)]
        fields = dict(zip(HEADER_FIELDS, values))
    return Header(text=text, turn=turn, paragraph=paragraph, **fields)


def _parse_dialogue(stripped: str, paragraph: int) -> Dialogue | None:
    if DIALOGUE_SEPARATOR not in stripped:
        return None
    speaker, line = stripped.split(DIALOGUE_SEPARATOR, 1)
    speaker = speaker.strip(_EMPHASIS)
    line = line.strip().lstrip("*_").strip()
    if not speaker:
        return None
    return Dialogue(speaker=speaker, line=line, paragraph=paragraph)


def _parse_monologue(stripped: str, paragraph: int) -> Monologue | None:
    for open_, close in MONOLOGUE_DELIMITERS:
        if open_ == close and (stripped.startswith(open_ * 2) or stripped.endswith(close * 2)):
            # **bold** and __underline__ are emphasis, not monologue
            continue
        if (
            len(stripped) > len(open_) + len(close)
            and stripped.startswith(open_)
            and stripped.endswith(close)
        ):
            text = stripped[len(open_):-len(close)].strip(_EMPHASIS)
            if text:
                return Monologue(text=text, paragraph=paragraph)
    return None


def parse_narrative(text: str) -> list[NarrativeSegment]:
    """Parse a raw model reply into header/dialogue/monologue/narration segments."""
    segments: list[NarrativeSegment] = []
    paragraph = 0
    pending_break = False

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            pending_break = bool(segments)
            continue
        if pending_break:
            paragraph += 1
            pending_break = False

        segment = (
            _parse_header(stripped, paragraph)
            or _parse_dialogue(stripped, paragraph)
            or _parse_monologue(stripped, paragraph)
            or Narration(text=stripped, paragraph=paragraph)
        )
        segments.append(segment)

    return segments


def segments_to_text(segments: list[NarrativeSegment]) -> str:
    """Convert segments back to plain text, blank line between paragraphs."""
    parts: list[str] = []
    last_paragraph = None
    for seg in segments:
        if last_paragraph is not None and seg.paragraph != last_paragraph:
            parts.append("")
        last_paragraph = seg.paragraph
        if seg.type == "header":
            parts.append(f"`{seg.text}`")
        elif seg.type == "dialogue":
            parts.append(f"{seg.speaker} | {seg.line}")
        elif seg.type == "monologue":
            parts.append(f"*{seg.text}*")
        else:
            parts.append(seg.text)
    return "\n".join(parts)
