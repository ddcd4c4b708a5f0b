"""Text extraction from PDF bytes.

Three strategies run in order through ``FallbackChain``: the PyMuPDF text
layer, a page-by-page pypdf walk, and Tesseract OCR over rendered pages for
scanned documents.
"""

import io
import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

from beacon.config import settings
from beacon.errors import ConversionError, EmptyDocument, InvalidFormat, ParserUnavailable, PasswordProtected
from beacon.services.fallback_chain import FallbackChain, Strategy, Verdict
from beacon.services.parser_loader import ParserInitError, ParserResource, pymupdf_parser

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"

_ENCRYPTION_HINT = re.compile(r"password|encrypt|decrypt", re.IGNORECASE)

_GENERIC_TITLES = re.compile(r"^(untitled|document\d*|microsoft (word|powerpoint) - .*|slide \d+)$", re.IGNORECASE)

PASSWORD_MESSAGE = "PDF is password-protected or encrypted. Please provide an unencrypted PDF."


@dataclass
class ExtractedText:
    text: str
    method: Optional[str]


def ensure_pdf(pdf_bytes: bytes) -> None:
    if not pdf_bytes or not pdf_bytes.startswith(PDF_MAGIC):
        head = pdf_bytes[:20].hex() if pdf_bytes else ""
        logger.warning(f"Invalid PDF header, first bytes: {head}")
        raise InvalidFormat(
            "Invalid PDF file: file does not start with PDF header. The file may be corrupted."
        )


def _mentions_encryption(exc: Exception) -> bool:
    return bool(_ENCRYPTION_HINT.search(str(exc)))


def classify_text_error(exc: Exception) -> Verdict:
    if isinstance(exc, ParserInitError):
        return Verdict.RETRY
    if isinstance(exc, ConversionError):
        return Verdict.ABORT
    return Verdict.FALL_THROUGH


class PdfTextExtractor:
    def __init__(
        self,
        parser: Optional[ParserResource] = None,
        min_text_chars: Optional[int] = None,
        ocr_max_pages: Optional[int] = None,
        ocr_language: Optional[str] = None,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.parser = parser or pymupdf_parser
        self.min_text_chars = settings.min_text_chars if min_text_chars is None else min_text_chars
        self.ocr_max_pages = ocr_max_pages or settings.ocr_max_pages
        self.ocr_language = ocr_language or settings.ocr_language
        self.retry_delay = settings.parser_retry_delay if retry_delay is None else retry_delay
        self.sleep = sleep

    def is_sufficient(self, text: str) -> bool:
        return len(text.strip()) > self.min_text_chars

    def extract_text(self, pdf_bytes: bytes) -> str:
        return self.extract(pdf_bytes).text

    def extract(self, pdf_bytes: bytes) -> ExtractedText:
        """Run the strategy chain and return the best text found."""
        ensure_pdf(pdf_bytes)

        chain = FallbackChain(self._strategies(), is_sufficient=self.is_sufficient, sleep=self.sleep)
        result = chain.run(pdf_bytes)

        text = (result.value or "").strip()
        if text:
            if not result.sufficient:
                logger.info(
                    f"Only {len(text)} chars recovered (method={result.method}); "
                    f"continuing with short text"
                )
            return ExtractedText(text=text, method=result.method)

        if not result.completed and any(isinstance(e, ParserInitError) for e in result.errors.values()):
            raise ParserUnavailable(
                "PDF parsing failed due to a library initialization issue. "
                "Please try uploading the file again, or ensure the PDF is not corrupted."
            )
        raise EmptyDocument("PDF appears to be empty or contains no extractable text.")

    def _strategies(self) -> list[Strategy[str]]:
        return [
            Strategy(
                name="pymupdf",
                run=self._pymupdf_text,
                classify=classify_text_error,
                on_retry=self.parser.reset,
                max_retries=1,
                retry_delay=self.retry_delay,
            ),
            Strategy(name="pypdf", run=self._pypdf_text, classify=classify_text_error),
            Strategy(name="ocr", run=self._ocr_text, classify=classify_text_error),
        ]

    def _open_document(self, pdf_bytes: bytes):
        fitz = self.parser.get()
        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as e:
            if _mentions_encryption(e):
                raise PasswordProtected(PASSWORD_MESSAGE) from e
            raise
        if doc.needs_pass:
            doc.close()
            raise PasswordProtected(PASSWORD_MESSAGE)
        return doc

    def _pymupdf_text(self, pdf_bytes: bytes) -> str:
        doc = self._open_document(pdf_bytes)
        try:
            pages = [page.get_text("text") for page in doc]
        finally:
            doc.close()
        return "\n\n".join(p.strip() for p in pages if p.strip())

    def _pypdf_text(self, pdf_bytes: bytes) -> str:
        from pypdf import PdfReader
        from pypdf.errors import FileNotDecryptedError

        reader = PdfReader(io.BytesIO(pdf_bytes))
        if reader.is_encrypted:
            try:
                if not reader.decrypt(""):
                    raise PasswordProtected(PASSWORD_MESSAGE)
            except (FileNotDecryptedError, NotImplementedError) as e:
                raise PasswordProtected(PASSWORD_MESSAGE) from e

        pages = []
        for i, page in enumerate(reader.pages):
            try:
                text = page.extract_text() or ""
            except Exception as e:
                if _mentions_encryption(e):
                    raise PasswordProtected(PASSWORD_MESSAGE) from e
                logger.debug(f"pypdf could not read page {i + 1}: {e}")
                continue
            if text.strip():
                pages.append(text.strip())
        return "\n\n".join(pages)

    def _ocr_text(self, pdf_bytes: bytes) -> str:
        """Render pages to bitmaps and recognise them with Tesseract."""
        import pytesseract
        from PIL import Image

        fitz = self.parser.get()
        doc = self._open_document(pdf_bytes)
        parts = []
        try:
            for i, page in enumerate(doc):
                if i >= self.ocr_max_pages:
                    logger.info(f"OCR stopped at page cap ({self.ocr_max_pages})")
                    break
                pix = page.get_pixmap(matrix=fitz.Matrix(2, 2))
                with Image.open(io.BytesIO(pix.tobytes("png"))) as img:
                    text = pytesseract.image_to_string(img, lang=self.ocr_language).strip()
                if text:
                    parts.append(f"--- Page {i + 1} ---\n{text}")
        finally:
            doc.close()

        logger.info(f"OCR recovered text from {len(parts)} page(s)")
        return "\n\n".join(parts)

    def extract_title(self, pdf_bytes: bytes, filename: str) -> str:
        """Best-effort document title for the cover slide."""
        fallback = re.sub(r"\.pdf$", "", filename, flags=re.IGNORECASE)
        try:
            doc = self._open_document(pdf_bytes)
        except Exception as e:
            logger.debug(f"Title extraction skipped: {e}")
            return fallback

        try:
            meta_title = ((doc.metadata or {}).get("title") or "").strip()
            if meta_title and not _GENERIC_TITLES.match(meta_title):
                return meta_title
            if doc.page_count:
                for line in doc[0].get_text("text").splitlines():
                    line = line.strip()
                    if 3 <= len(line) <= 100:
                        return line
        except Exception as e:
            logger.debug(f"Title extraction failed: {e}")
        finally:
            doc.close()
        return fallback
