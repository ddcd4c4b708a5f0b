"""Tests for the end-to-end conversion service."""

import base64

import pytest

from beacon.errors import InvalidFormat
from beacon.services.pdf_pipeline import PdfConversionService, pptx_filename
from beacon.services.pdf_text import PdfTextExtractor


@pytest.fixture
def service_factory():
    def _make(llm=None, vision=False) -> PdfConversionService:
        return PdfConversionService(
            text_extractor=PdfTextExtractor(sleep=lambda _: None),
            llm_client=llm,
            vision_enabled=vision,
        )

    return _make


class TestPptxFilename:
    @pytest.mark.parametrize(
        "name,expected",
        [("report.pdf", "report.pptx"), ("REPORT.PDF", "REPORT.pptx"), ("notes", "notes.pptx")],
    )
    def test_extension_swapped(self, name, expected):
        assert pptx_filename(name) == expected


class TestConvert:
    async def test_heuristic_conversion(self, service_factory, report_pdf):
        outcome = await service_factory().convert(report_pdf, "report.pdf", use_ai=False)

        assert outcome.used_ai is False
        assert outcome.text_method == "pymupdf"
        assert outcome.result.total_slides == len(outcome.result.slides) + 1
        assert base64.b64decode(outcome.result.pptx_base64)[:2] == b"PK"
        assert outcome.duration_ms >= 0

    async def test_ai_conversion_with_described_images(
        self, service_factory, make_pdf, report_lines, fake_llm, make_slides_payload
    ):
        pdf = make_pdf([report_lines], png_images=[(64, 48), (50, 50)])
        llm = fake_llm(make_slides_payload(4))

        outcome = await service_factory(llm, vision=True).convert(pdf, "report.pdf", num_slides=6)

        assert outcome.used_ai is True
        assert len(outcome.result.slides) == 6
        assert len(llm.described) == 2
        assert "A chart" in llm.calls[0]["user"]
        assert sum(len(s.images or []) for s in outcome.result.slides) == 2

    async def test_short_text_skips_ai(self, service_factory, make_pdf, fake_llm, make_slides_payload):
        llm = fake_llm(make_slides_payload(4))
        pdf = make_pdf([["Short cover page", "Just two lines"]])

        service = service_factory(llm)
        service.text_extractor._ocr_text = lambda b: ""

        slides, used_ai, _ = await service.build_slides(pdf, "short.pdf", num_slides=10)

        assert used_ai is False
        assert llm.calls == []
        assert slides

    async def test_invalid_header(self, service_factory):
        with pytest.raises(InvalidFormat):
            await service_factory().convert(b"not a pdf", "x.pdf")
