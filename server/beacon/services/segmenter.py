"""Pattern-based slide segmentation.

Deterministic and offline: used when AI synthesis is disabled, unavailable or
fails. Every string placed on a slide is taken verbatim from the input text.
"""

import logging
import math
import re
from typing import Optional

from beacon.schemas.slides import Slide, SlideType

logger = logging.getLogger(__name__)

MAX_SLIDES = 50

_QUOTE = re.compile(r"""^["“'‘](?P<quote>.+?)["”'’]\s*(?:[-–—]\s*(?P<attribution>.+))?$""", re.DOTALL)
_CHAPTER = re.compile(r"^(Chapter|Section|Part|Module)\s+\d+", re.IGNORECASE)
_BLANK_LINES = re.compile(r"\n\s*\n")


def clean_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def is_section_header(line: str) -> bool:
    line = line.strip()
    if not line or len(line) >= 60:
        return False
    all_caps = any(c.isalpha() for c in line) and line == line.upper()
    return line.endswith(":") or all_caps or bool(_CHAPTER.match(line))


def match_quote(text: str) -> Optional[tuple[str, Optional[str]]]:
    m = _QUOTE.match(text.strip())
    if not m:
        return None
    attribution = m.group("attribution")
    return m.group("quote").strip(), attribution.strip() if attribution else None


def split_columns(items: list[str]) -> tuple[list[str], list[str]]:
    mid = math.ceil(len(items) / 2)
    return items[:mid], items[mid:]


def classify_lines(lines: list[str]) -> Slide:
    """Turn one section's lines into a slide; the first matching rule wins."""
    first, rest = lines[0], lines[1:]

    if not rest:
        quote = match_quote(first)
        if quote:
            return Slide(title="", content=[], type=SlideType.QUOTE, quote=quote[0], attribution=quote[1])

        if is_section_header(first):
            return Slide(title=first.rstrip(":").strip() or first, content=[], type=SlideType.SECTION_DIVIDER)

        if len(first) < 80:
            return Slide(title=first, content=[], type=SlideType.TITLE, highlight=len(first) < 40)

    if len(rest) >= 6 and all(len(line) < 100 for line in rest):
        left, right = split_columns(rest)
        return Slide(
            title=first,
            content=rest,
            type=SlideType.TWO_COLUMN,
            left_content=left,
            right_content=right,
        )

    if len(first) < 50 and 2 <= len(rest) <= 5:
        return Slide(title=first, content=rest, type=SlideType.HIGHLIGHT, highlight=True)

    return Slide(title=first, content=rest or [first], type=SlideType.CONTENT)


def group_lines(lines: list[str]) -> list[list[str]]:
    """Group a run of lines that has no paragraph breaks.

    A new group starts at each section header, or after five lines when the
    next line is short. Headers stay on their own so they become dividers.
    """
    groups: list[list[str]] = []
    current: list[str] = []

    for line in lines:
        header = is_section_header(line)
        if header or (len(current) >= 5 and len(line) < 60):
            if current:
                groups.append(current)
                current = []
            if header:
                groups.append([line])
                continue
        current.append(line)

    if current:
        groups.append(current)
    return groups


def segment(text: str, filename: str) -> list[Slide]:
    """Split extracted PDF text into between 1 and 50 slides."""
    cleaned = clean_text(text)

    sections = [s for s in _BLANK_LINES.split(cleaned) if s.strip()]
    if len(sections) > 1:
        groups = [[line.strip() for line in s.split("\n") if line.strip()] for s in sections]
    else:
        lines = [line.strip() for line in cleaned.split("\n") if line.strip()]
        groups = group_lines(lines)

    slides = [classify_lines(g) for g in groups if g]

    if not slides:
        snippet = cleaned[:500]
        slides.append(
            Slide(
                title=re.sub(r"\.pdf$", "", filename, flags=re.IGNORECASE),
                content=[snippet] if snippet else [],
                type=SlideType.CONTENT,
            )
        )

    if len(slides) > MAX_SLIDES:
        logger.info(f"Segmenter produced {len(slides)} slides, truncating to {MAX_SLIDES}")
        slides = slides[:MAX_SLIDES]

    return slides
