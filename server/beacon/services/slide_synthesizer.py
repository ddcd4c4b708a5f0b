"""LLM-driven slide synthesis with exact-count enforcement."""

import json
import logging
import math
from typing import Any, Optional

from beacon.config import settings
from beacon.errors import ProviderResponseMalformed, ProviderUnavailable
from beacon.schemas.slides import ExtractedImage, Slide, SlideType
from beacon.services.llm_client import LLMClient
from beacon.services.slide_prompts import build_prompts

logger = logging.getLogger(__name__)

_SLIDE_TYPES = {t.value for t in SlideType}


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]


def _optional_string(value: Any) -> Optional[str]:
    return value.strip() if isinstance(value, str) and value.strip() else None


def _int_list(value: Any) -> list[int]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, int) and not isinstance(v, bool)]


def parse_slides_payload(raw: str) -> list[dict]:
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Model returned non-JSON output: {str(raw)[:200]}")
        raise ProviderResponseMalformed(f"Model response was not valid JSON: {e}") from e

    slides = parsed.get("slides") if isinstance(parsed, dict) else None
    if not isinstance(slides, list):
        raise ProviderResponseMalformed("Model response has no 'slides' array")
    return [s for s in slides if isinstance(s, dict)]


def resolve_image_refs(raw: dict, images: list[ExtractedImage]) -> list[ExtractedImage]:
    """Map the model's image references onto extracted images.

    ``imageIndices`` are 0-based indices, ``imagePages`` are page numbers, and a
    bare ``images`` list of integers is read as an index when in range,
    otherwise as a page number.
    """
    if not images:
        return []

    picked: list[int] = []

    def add(i: int) -> None:
        if 0 <= i < len(images) and i not in picked:
            picked.append(i)

    def add_page(page: int) -> None:
        for i, image in enumerate(images):
            if image.page == page:
                add(i)

    for value in _int_list(raw.get("imageIndices")):
        add(value)
    for value in _int_list(raw.get("imagePages")):
        add_page(value)
    for value in _int_list(raw.get("images")):
        if 0 <= value < len(images):
            add(value)
        else:
            add_page(value)

    return [images[i] for i in picked]


def normalize_slides(raw_slides: list[dict], images: Optional[list[ExtractedImage]] = None) -> list[Slide]:
    """Drop empty slides, fill defaults and attach referenced images."""
    images = images or []
    slides = []
    for raw in raw_slides:
        title = _optional_string(raw.get("title"))
        content = _string_list(raw.get("content"))
        quote = _optional_string(raw.get("quote"))
        if not title and not content and not quote:
            continue

        slide_type = raw.get("type")
        if not isinstance(slide_type, str) or slide_type not in _SLIDE_TYPES:
            slide_type = SlideType.CONTENT.value
        left = _string_list(raw.get("leftContent")) or None
        right = _string_list(raw.get("rightContent")) or None
        referenced = resolve_image_refs(raw, images)

        slides.append(
            Slide(
                title=title or ("" if slide_type == SlideType.QUOTE.value else "Untitled"),
                content=content,
                type=slide_type,
                quote=quote,
                attribution=_optional_string(raw.get("attribution")),
                left_content=left,
                right_content=right,
                highlight=raw.get("highlight") is True,
                images=referenced or None,
            )
        )
    return slides


def distribute_images(slides: list[Slide], images: list[ExtractedImage]) -> list[Slide]:
    """Spread images over slides in order, ceil(k / n) per slide."""
    if not slides or not images:
        return slides
    per_slide = math.ceil(len(images) / len(slides))
    result = []
    for i, slide in enumerate(slides):
        chunk = images[i * per_slide : (i + 1) * per_slide]
        result.append(slide.model_copy(update={"images": chunk or None}))
    return result


def slide_items(slide: Slide) -> list[str]:
    """Bullet-level strings of a slide, whatever its layout."""
    if slide.content:
        return list(slide.content)
    columns = (slide.left_content or []) + (slide.right_content or [])
    if columns:
        return columns
    return [slide.quote] if slide.quote else []


def redistribute(slides: list[Slide], target_count: int) -> list[Slide]:
    """Re-chunk all slide content into exactly ``target_count`` slides.

    flatten → chunk(ceil(items / n)) → rehydrate titles by position →
    spread images ceil(images / n) per slide.
    """
    if target_count < 1:
        raise ValueError("target_count must be at least 1")

    items: list[str] = []
    titles: list[str] = []
    images: list[ExtractedImage] = []
    for slide in slides:
        slide_content = slide_items(slide)
        items.extend(slide_content)
        if slide.title and (slide_content or slide.type in (SlideType.TITLE.value, SlideType.SECTION_DIVIDER.value)):
            titles.append(slide.title)
        for image in slide.images or []:
            if image not in images:
                images.append(image)

    per_slide = math.ceil(len(items) / target_count) if items else 0
    result = []
    for i in range(target_count):
        if titles:
            title = titles[math.floor(i * len(titles) / target_count)]
        else:
            title = f"Slide {i + 1}"
        result.append(
            Slide(
                title=title,
                content=items[i * per_slide : (i + 1) * per_slide] if per_slide else [],
                type=SlideType.CONTENT,
            )
        )

    return distribute_images(result, images)


class SlideSynthesizer:
    def __init__(
        self,
        client: Optional[LLMClient],
        text_budget: Optional[int] = None,
        max_deck_slides: Optional[int] = None,
    ):
        self.client = client
        self.text_budget = text_budget or settings.ai_text_budget
        self.max_deck_slides = max_deck_slides or settings.max_deck_slides

    async def synthesize(
        self,
        text: str,
        filename: str,
        target_count: Optional[int] = None,
        images: Optional[list[ExtractedImage]] = None,
    ) -> list[Slide]:
        """Ask the model for a deck; errors propagate to the caller."""
        if self.client is None:
            raise ProviderUnavailable("No language model provider is configured")

        images = images or []
        system_prompt, user_prompt = build_prompts(
            text, filename, self.text_budget, target_count=target_count, images=images
        )
        max_tokens = min(4000, max(1500, target_count * 200)) if target_count else 4000

        raw = await self.client.complete_json(system_prompt, user_prompt, max_tokens=max_tokens, temperature=0.7)
        slides = normalize_slides(parse_slides_payload(raw), images)
        if not slides:
            raise ProviderResponseMalformed("Model response contained no usable slides")

        if images and not any(s.images for s in slides):
            slides = distribute_images(slides, images)

        if target_count:
            logger.info(f"Requested {target_count} slides, model produced {len(slides)}")
            slides = redistribute(slides, target_count)
            logger.info(f"Redistributed content into exactly {len(slides)} slides")
            return slides

        return slides[: self.max_deck_slides]
