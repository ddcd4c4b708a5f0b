"""Pytest configuration and fixtures."""

import io
import json
import os

# Settings are read at import time: keep tests off real provider keys and disk
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["OPENAI_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""
os.environ["DEBUG"] = "false"

import fitz  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402

from beacon.api.pdf_to_ppt import get_chunk_store, get_conversion_service  # noqa: E402
from beacon.main import app  # noqa: E402
from beacon.services.chunk_store import ChunkStore  # noqa: E402
from beacon.services.pdf_pipeline import PdfConversionService  # noqa: E402
from beacon.services.pdf_text import PdfTextExtractor  # noqa: E402

REPORT_LINES = [
    "Annual Report 2024",
    "Revenue grew steadily across every region during the fiscal year under review.",
    "Operating costs were held flat thanks to the consolidation of two regional offices.",
    "Customer retention improved to ninety two percent after the support desk was rebuilt.",
    "The board approved a new capital plan covering data centres and field equipment upgrades.",
    "Headcount rose modestly, mostly in engineering, while contractor spend fell sharply this year.",
    "Supply chain delays eased in the second half and inventory levels returned to target ranges.",
    "Two acquisitions closed in the third quarter and both were integrated ahead of the schedule.",
    "Cash reserves ended the year higher than forecast, leaving room for the planned dividend increase next spring.",
    "Management expects growth to continue next year, with risks concentrated in currency movements.",
]


# =============================================================================
# PDF builders
# =============================================================================


def _png_bytes(width: int, height: int, color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def _jpeg_bytes(width: int, height: int, color=(30, 120, 200)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture
def make_pdf():
    """Build a PDF in memory: one list of text lines per page."""

    def _make(
        pages: list[list[str]],
        fontsize: float = 8,
        title: str = "",
        png_images: list[tuple[int, int]] = (),
        jpeg_images: list[tuple[int, int]] = (),
        password: str = "",
    ) -> bytes:
        doc = fitz.open()
        for lines in pages or [[]]:
            page = doc.new_page()
            for i, line in enumerate(lines):
                page.insert_text((40, 60 + i * 14), line, fontsize=fontsize)
        first = doc[0]
        y = 400
        for i, (width, height) in enumerate(png_images):
            # Distinct colours so PyMuPDF does not share one image object
            color = (200, 30 + 40 * i, 30)
            first.insert_image(fitz.Rect(40, y, 40 + width, y + height), stream=_png_bytes(width, height, color))
            y += height + 10
        for width, height in jpeg_images:
            first.insert_image(fitz.Rect(300, 400, 300 + width, 400 + height), stream=_jpeg_bytes(width, height))
        if title:
            doc.set_metadata({"title": title})

        if password:
            data = doc.tobytes(encryption=fitz.PDF_ENCRYPT_AES_256, user_pw=password, owner_pw=password + "-owner")
        else:
            data = doc.tobytes()
        doc.close()
        return data

    return _make


@pytest.fixture
def report_lines() -> list[str]:
    return list(REPORT_LINES)


@pytest.fixture
def report_pdf(make_pdf) -> bytes:
    return make_pdf([REPORT_LINES])


@pytest.fixture
def png_data_uri() -> str:
    import base64

    return "data:image/png;base64," + base64.b64encode(_png_bytes(64, 48)).decode("ascii")


# =============================================================================
# LLM fakes
# =============================================================================


class FakeLLMClient:
    """Records prompts and replays canned responses."""

    provider = "fake"
    model = "fake-model"

    def __init__(self, response="", descriptions=None, error: Exception = None):
        self.response = response
        self.descriptions = descriptions or {}
        self.error = error
        self.calls: list[dict] = []
        self.described: list[str] = []

    async def complete_json(self, system_prompt, user_prompt, max_tokens=4000, temperature=0.7) -> str:
        self.calls.append(
            {"system": system_prompt, "user": user_prompt, "max_tokens": max_tokens, "temperature": temperature}
        )
        if self.error:
            raise self.error
        if isinstance(self.response, (dict, list)):
            return json.dumps(self.response)
        return self.response

    async def describe_image(self, data_uri, prompt, max_tokens=150) -> str:
        self.described.append(data_uri)
        return self.descriptions.get(data_uri, "A chart")


@pytest.fixture
def fake_llm():
    return FakeLLMClient


def slides_payload(count: int, bullets: int = 3) -> dict:
    return {
        "slides": [
            {
                "title": f"Topic {i + 1}",
                "content": [f"Point {i + 1}.{j + 1} explained in a full sentence." for j in range(bullets)],
                "type": "content",
            }
            for i in range(count)
        ]
    }


@pytest.fixture
def make_slides_payload():
    return slides_payload


# =============================================================================
# App
# =============================================================================


@pytest.fixture
def chunk_store() -> ChunkStore:
    return ChunkStore(ttl=300)


@pytest.fixture
def conversion_service():
    """Heuristic-only service; tests swap in an LLM client where needed."""
    return PdfConversionService(
        text_extractor=PdfTextExtractor(sleep=lambda _: None),
        llm_client=None,
        vision_enabled=False,
    )


@pytest.fixture
def client(conversion_service, chunk_store):
    app.dependency_overrides[get_conversion_service] = lambda: conversion_service
    app.dependency_overrides[get_chunk_store] = lambda: chunk_store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
