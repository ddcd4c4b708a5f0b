"""PowerPoint packaging of a slide deck with python-pptx."""

import base64
import io
import logging
import re
from typing import Callable, Optional

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Inches, Pt

from beacon.schemas.slides import Slide, SlideType

logger = logging.getLogger(__name__)

SLIDE_WIDTH = 10.0
SLIDE_HEIGHT = 5.625
BLANK_LAYOUT = 6
FONT = "Poppins"

PRIMARY = "F36C24"
SECONDARY = "0092C5"
HEADING = "00367E"
BODY = "090909"
WHITE = "FFFFFF"


def _rgb(hex_color: str) -> RGBColor:
    return RGBColor.from_string(hex_color)


def _blank(prs, background: str = WHITE):
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = _rgb(background)
    return slide


def _bar(slide, top: float, height: float, color: str) -> None:
    shape = slide.shapes.add_shape(MSO_SHAPE.RECTANGLE, 0, Inches(top), Inches(SLIDE_WIDTH), Inches(height))
    shape.fill.solid()
    shape.fill.fore_color.rgb = _rgb(color)
    shape.line.fill.background()


def _text(
    slide,
    text: str,
    box: tuple[float, float, float, float],
    size: int,
    color: str,
    bold: bool = False,
    italic: bool = False,
    align=PP_ALIGN.LEFT,
    anchor=MSO_ANCHOR.TOP,
) -> None:
    x, y, w, h = box
    frame = slide.shapes.add_textbox(Inches(x), Inches(y), Inches(w), Inches(h)).text_frame
    frame.word_wrap = True
    frame.vertical_anchor = anchor
    paragraph = frame.paragraphs[0]
    paragraph.alignment = align
    run = paragraph.add_run()
    run.text = text
    run.font.name = FONT
    run.font.size = Pt(size)
    run.font.bold = bold
    run.font.italic = italic
    run.font.color.rgb = _rgb(color)


def _bullets(slide, items: list[str], box: tuple[float, float, float, float], size: int) -> None:
    if not items:
        return
    x, y, w, h = box
    frame = slide.shapes.add_textbox(Inches(x), Inches(y), Inches(w), Inches(h)).text_frame
    frame.word_wrap = True
    for i, item in enumerate(items):
        paragraph = frame.paragraphs[0] if i == 0 else frame.add_paragraph()
        paragraph.space_after = Pt(6)
        run = paragraph.add_run()
        run.text = f"• {item}"
        run.font.name = FONT
        run.font.size = Pt(size)
        run.font.color.rgb = _rgb(BODY)


def _cover(prs, title: str) -> None:
    slide = _blank(prs)
    _text(slide, title, (0.5, 2.0, 9.0, 1.5), 44, HEADING, bold=True, anchor=MSO_ANCHOR.MIDDLE)


def _content(prs, slide_data: Slide) -> None:
    slide = _blank(prs)
    _bar(slide, 0, 0.1, PRIMARY)
    if slide_data.title:
        _text(slide, slide_data.title, (0.5, 0.3, 9.0, 0.8), 25, HEADING, bold=True)

    content_width = 8.6
    if slide_data.images:
        try:
            content_width = _add_image(slide, slide_data)
        except Exception as e:
            logger.warning(f"Could not place image on slide '{slide_data.title}': {e}")
    _bullets(slide, slide_data.content, (0.7, 1.4, content_width, 3.5), 14)


def _add_image(slide, slide_data: Slide) -> float:
    """Place the first image on the right; returns the width left for text."""
    image = slide_data.images[0]
    payload = image.data.partition(",")[2]
    stream = io.BytesIO(base64.b64decode(payload))

    max_w, max_h = 4.0, 3.0
    ratio = image.width / image.height
    w, h = max_w, max_w / ratio
    if h > max_h:
        h, w = max_h, max_h * ratio

    slide.shapes.add_picture(stream, Inches(SLIDE_WIDTH - w - 0.5), Inches(1.4), Inches(w), Inches(h))
    return SLIDE_WIDTH - w - 1.2


def _quote(prs, slide_data: Slide) -> None:
    slide = _blank(prs, SECONDARY)
    quote = slide_data.quote or slide_data.title
    _text(slide, f"“{quote}”", (1.0, 1.6, 8.0, 2.2), 32, WHITE, italic=True,
          align=PP_ALIGN.CENTER, anchor=MSO_ANCHOR.MIDDLE)
    if slide_data.attribution:
        _text(slide, f"— {slide_data.attribution}", (1.0, 4.0, 8.0, 0.5), 20, WHITE, align=PP_ALIGN.RIGHT)


def _two_column(prs, slide_data: Slide) -> None:
    if not (slide_data.left_content or slide_data.right_content):
        return _content(prs, slide_data)
    slide = _blank(prs)
    _bar(slide, 0, 0.1, PRIMARY)
    _text(slide, slide_data.title, (0.5, 0.3, 9.0, 0.8), 28, HEADING, bold=True)
    _bullets(slide, slide_data.left_content or [], (0.5, 1.4, 4.3, 3.5), 16)
    _bullets(slide, slide_data.right_content or [], (5.5, 1.4, 4.3, 3.5), 16)


def _title(prs, slide_data: Slide) -> None:
    slide = _blank(prs, SECONDARY)
    _text(slide, slide_data.title, (0.5, 1.8, 9.0, 2.0), 52 if slide_data.highlight else 44, WHITE,
          bold=True, anchor=MSO_ANCHOR.MIDDLE)
    if slide_data.content:
        _bullets(slide, slide_data.content, (0.5, 3.8, 9.0, 1.5), 16)


def _highlight(prs, slide_data: Slide) -> None:
    slide = _blank(prs)
    _bar(slide, 0, 0.1, PRIMARY)
    _text(slide, slide_data.title, (0.5, 0.3, 9.0, 1.0), 40, PRIMARY, bold=True,
          align=PP_ALIGN.CENTER, anchor=MSO_ANCHOR.MIDDLE)
    _bullets(slide, slide_data.content, (0.7, 1.6, 8.6, 3.2), 20)


def _section_divider(prs, slide_data: Slide) -> None:
    slide = _blank(prs)
    _bar(slide, 2.0, 1.5, SECONDARY)
    _text(slide, slide_data.title, (0.5, 2.2, 9.0, 1.1), 40, WHITE, bold=True,
          align=PP_ALIGN.CENTER, anchor=MSO_ANCHOR.MIDDLE)


_BUILDERS: dict[str, Callable] = {
    SlideType.QUOTE.value: _quote,
    SlideType.TWO_COLUMN.value: _two_column,
    SlideType.TITLE.value: _title,
    SlideType.HIGHLIGHT.value: _highlight,
    SlideType.SECTION_DIVIDER.value: _section_divider,
}


def build_pptx(slides: list[Slide], filename: str, title: Optional[str] = None) -> bytes:
    """Build a 16:9 deck: a cover slide followed by one slide per entry."""
    prs = Presentation()
    prs.slide_width = Inches(SLIDE_WIDTH)
    prs.slide_height = Inches(SLIDE_HEIGHT)

    _cover(prs, title or re.sub(r"\.pdf$", "", filename, flags=re.IGNORECASE))
    for slide_data in slides:
        _BUILDERS.get(slide_data.type, _content)(prs, slide_data)

    buf = io.BytesIO()
    prs.save(buf)
    logger.debug(f"Built PPTX with {len(slides) + 1} slides ({buf.tell()} bytes)")
    return buf.getvalue()
