"""Self-contained HTML preview of a slide deck.

One ``<div class="slide ...">`` per slide; a small inline script keeps the
current index and toggles the ``active`` class on arrow keys and the
prev/next buttons.
"""

import re

from beacon.schemas.slides import Slide, SlideType

# Brand palette shared with the PPTX theme
COLORS = {
    "primary": "#F36C24",
    "secondary": "#0092C5",
    "heading": "#00367E",
    "body": "#090909",
    "background": "#FFFFFF",
}

_ESCAPES = {"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#039;"}

_STYLE = """
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body { font-family: Arial, sans-serif; background: #f3f4f6; display: flex; flex-direction: column; height: 100vh; overflow: hidden; }
    .slide-container { flex: 1; display: flex; align-items: center; justify-content: center; padding: 2rem; overflow-y: auto; }
    .slide { background: %(background)s; width: 960px; max-width: 100%%; min-height: 540px; padding: 2rem 3rem; box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1); position: relative; display: none; }
    .slide.active { display: block; }
    .slide::before { content: ''; position: absolute; top: 0; left: 0; right: 0; height: 15px; background: %(primary)s; }
    .slide h1 { font-size: 40px; color: %(heading)s; font-weight: bold; margin: 2rem 0 1rem; }
    .slide ul { list-style: none; margin-top: 1.5rem; counter-reset: item; }
    .slide li { font-size: 18px; color: %(body)s; margin-bottom: 0.75rem; padding-left: 1.75rem; position: relative; line-height: 1.5; }
    .slide li::before { content: counter(item) '.'; counter-increment: item; position: absolute; left: 0; color: %(primary)s; font-weight: bold; }
    .slide-cover::before, .slide-title::before { height: 30px; }
    .slide-cover h1 { font-size: 44px; margin-top: 8rem; }
    .slide-title { background: %(secondary)s; }
    .slide-title h1 { color: #fff; margin-top: 8rem; font-size: 48px; }
    .slide-title.highlight h1 { font-size: 56px; }
    .slide-section-divider h1 { background: %(secondary)s; color: #fff; text-align: center; padding: 2rem; margin-top: 8rem; }
    .slide-highlight h1 { color: %(primary)s; text-align: center; font-size: 44px; }
    .slide-highlight li { font-size: 22px; }
    .slide-quote { background: %(secondary)s; text-align: center; }
    .slide-quote blockquote { color: #fff; font-size: 36px; font-style: italic; margin-top: 6rem; }
    .slide-quote .attribution { color: #fff; font-size: 22px; text-align: right; margin-top: 2rem; }
    .columns { display: flex; gap: 2rem; }
    .columns ul { flex: 1; }
    .with-image { display: flex; gap: 2rem; align-items: flex-start; }
    .with-image ul { flex: 1; }
    .with-image img { max-width: 40%%; max-height: 320px; object-fit: contain; margin-top: 1.5rem; }
    .controls { display: flex; justify-content: space-between; align-items: center; padding: 1rem 2rem; background: white; border-top: 1px solid #e5e7eb; }
    .controls button { padding: 0.5rem 1rem; background: %(primary)s; color: white; border: none; border-radius: 0.375rem; cursor: pointer; font-size: 14px; font-weight: 500; }
    .controls button:hover { background: %(secondary)s; }
    .controls button:disabled { background: #d1d5db; cursor: not-allowed; }
    .slide-counter { font-size: 14px; color: #6b7280; }
""" % COLORS

_SCRIPT = """
    let currentSlideIndex = 0;
    const slides = document.querySelectorAll('.slide');
    const totalSlides = slides.length;

    function showSlide(index) {
      slides.forEach((slide, i) => slide.classList.toggle('active', i === index));
      document.getElementById('currentSlide').textContent = index + 1;
      document.getElementById('prevBtn').disabled = index === 0;
      document.getElementById('nextBtn').disabled = index === totalSlides - 1;
    }

    function nextSlide() {
      if (currentSlideIndex < totalSlides - 1) { currentSlideIndex++; showSlide(currentSlideIndex); }
    }

    function previousSlide() {
      if (currentSlideIndex > 0) { currentSlideIndex--; showSlide(currentSlideIndex); }
    }

    document.addEventListener('keydown', (e) => {
      if (e.key === 'ArrowRight' || e.key === 'ArrowDown') { nextSlide(); }
      else if (e.key === 'ArrowLeft' || e.key === 'ArrowUp') { previousSlide(); }
    });

    showSlide(0);
"""


def escape_html(text: str) -> str:
    return "".join(_ESCAPES.get(c, c) for c in text or "")


def _bullets(items: list[str]) -> str:
    if not items:
        return ""
    return "<ul>" + "".join(f"<li>{escape_html(item)}</li>" for item in items) + "</ul>"


def _image_tag(slide: Slide) -> str:
    if not slide.images:
        return ""
    image = slide.images[0]
    # Only data URIs produced by the image extractor are embedded.
    if not re.match(r"^data:image/(png|jpeg);base64,[A-Za-z0-9+/=]+$", image.data):
        return ""
    alt = escape_html(image.description or f"Image from page {image.page}")
    return f'<img src="{image.data}" alt="{alt}">'


def _slide_body(slide: Slide) -> str:
    slide_type = slide.type
    title = f"<h1>{escape_html(slide.title)}</h1>" if slide.title else ""

    if slide_type == SlideType.QUOTE:
        quote = escape_html(slide.quote or slide.title)
        body = f"<blockquote>&quot;{quote}&quot;</blockquote>"
        if slide.attribution:
            body += f'<p class="attribution">&mdash; {escape_html(slide.attribution)}</p>'
        return body

    if slide_type == SlideType.TWO_COLUMN and (slide.left_content or slide.right_content):
        return title + f'<div class="columns">{_bullets(slide.left_content or [])}{_bullets(slide.right_content or [])}</div>'

    if slide_type in (SlideType.TITLE, SlideType.SECTION_DIVIDER):
        return title

    image = _image_tag(slide)
    if image:
        return title + f'<div class="with-image">{_bullets(slide.content)}{image}</div>'
    return title + _bullets(slide.content)


def render(slides: list[Slide], filename: str) -> str:
    """Render the deck, preceded by a cover slide named after the file."""
    cover = Slide(title=re.sub(r"\.pdf$", "", filename, flags=re.IGNORECASE), content=[])

    divs = [
        f'<div class="slide slide-cover active" data-slide-index="0"><h1>{escape_html(cover.title)}</h1></div>'
    ]
    for index, slide in enumerate(slides, start=1):
        classes = f"slide slide-{slide.type}"
        if slide.highlight:
            classes += " highlight"
        divs.append(f'<div class="{classes}" data-slide-index="{index}">{_slide_body(slide)}</div>')

    total = len(slides) + 1
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape_html(cover.title)} - Preview</title>
  <style>{_STYLE}</style>
</head>
<body>
  <div class="slide-container">
    {"".join(divs)}
  </div>
  <div class="controls">
    <button id="prevBtn" onclick="previousSlide()">Previous</button>
    <span class="slide-counter"><span id="currentSlide">1</span> / <span id="totalSlides">{total}</span></span>
    <button id="nextBtn" onclick="nextSlide()">Next</button>
  </div>
  <script>{_SCRIPT}</script>
</body>
</html>"""
