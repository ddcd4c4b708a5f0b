import asyncio
import base64
import logging
import re
import time
from dataclasses import dataclass
from typing import Optional

from beacon.config import settings
from beacon.schemas.slides import ConversionResult, ExtractedImage, Slide
from beacon.services import html_preview
from beacon.services.llm_client import LLMClient, get_llm_client
from beacon.services.pdf_images import describe_images, extract_images
from beacon.services.pdf_text import PdfTextExtractor, ensure_pdf
from beacon.services.pptx_builder import build_pptx
from beacon.services.segmenter import segment
from beacon.services.slide_synthesizer import SlideSynthesizer

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass
class ConversionOutcome:
    result: ConversionResult
    used_ai: bool
    text_method: Optional[str]
    duration_ms: int


def pptx_filename(filename: str) -> str:
    if re.search(r"\.pdf$", filename, flags=re.IGNORECASE):
        return re.sub(r"\.pdf$", ".pptx", filename, flags=re.IGNORECASE)
    return f"{filename}.pptx"


class PdfConversionService:
    """Full pipeline: extract, synthesize or segment, package."""

    def __init__(
        self,
        text_extractor: Optional[PdfTextExtractor] = None,
        llm_client=_UNSET,
        synthesizer: Optional[SlideSynthesizer] = None,
        vision_enabled: Optional[bool] = None,
    ):
        self.text_extractor = text_extractor or PdfTextExtractor()
        self.llm_client: Optional[LLMClient] = get_llm_client() if llm_client is _UNSET else llm_client
        self.synthesizer = synthesizer or SlideSynthesizer(self.llm_client)
        self.vision_enabled = settings.vision_enabled if vision_enabled is None else vision_enabled

    async def _images_for_ai(self, pdf_bytes: bytes) -> list[ExtractedImage]:
        images = await asyncio.to_thread(extract_images, pdf_bytes)
        if images and self.vision_enabled and self.llm_client is not None:
            images = await describe_images(images, self.llm_client.describe_image)
        return images

    async def build_slides(
        self,
        pdf_bytes: bytes,
        filename: str,
        use_ai: bool = True,
        num_slides: Optional[int] = None,
    ) -> tuple[list[Slide], bool, Optional[str]]:
        """Return (slides, used_ai, text_method)."""
        ensure_pdf(pdf_bytes)
        extracted = await asyncio.to_thread(self.text_extractor.extract, pdf_bytes)
        text = extracted.text

        if use_ai and self.llm_client is not None and len(text) > settings.min_text_chars:
            try:
                images = await self._images_for_ai(pdf_bytes)
                slides = await self.synthesizer.synthesize(text, filename, target_count=num_slides, images=images)
                if slides:
                    return slides, True, extracted.method
                logger.warning("AI synthesis returned no slides, falling back to pattern-based")
            except Exception as e:
                logger.warning(f"AI processing failed, falling back to pattern-based: {e}")
        elif use_ai and self.llm_client is None:
            logger.info("No LLM provider configured, using pattern-based segmentation")

        return segment(text, filename), False, extracted.method

    async def convert(
        self,
        pdf_bytes: bytes,
        filename: str,
        use_ai: bool = True,
        num_slides: Optional[int] = None,
    ) -> ConversionOutcome:
        started = time.monotonic()

        slides, used_ai, text_method = await self.build_slides(pdf_bytes, filename, use_ai, num_slides)
        title = await asyncio.to_thread(self.text_extractor.extract_title, pdf_bytes, filename)
        pptx_bytes = await asyncio.to_thread(build_pptx, slides, filename, title)
        preview = html_preview.render(slides, filename)

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Converted '{filename}': {len(slides)} slides, ai={used_ai}, "
            f"text={text_method}, {duration_ms}ms"
        )

        result = ConversionResult(
            slides=slides,
            html_preview=preview,
            pptx_base64=base64.b64encode(pptx_bytes).decode("ascii"),
            filename=pptx_filename(filename),
            total_slides=len(slides) + 1,
        )
        return ConversionOutcome(result=result, used_ai=used_ai, text_method=text_method, duration_ms=duration_ms)
