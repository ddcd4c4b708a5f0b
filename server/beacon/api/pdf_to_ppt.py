import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from beacon.config import settings
from beacon.errors import InvalidUpload, OversizedUpload
from beacon.models.base import get_db
from beacon.models.conversion import Conversion
from beacon.schemas.slides import ChunkAck, ConversionResult, UploadConfig
from beacon.services.chunk_store import ChunkStore, chunk_store
from beacon.services.pdf_pipeline import ConversionOutcome, PdfConversionService
from beacon.services.pdf_text import ensure_pdf

logger = logging.getLogger(__name__)

router = APIRouter()


def get_conversion_service() -> PdfConversionService:
    return PdfConversionService()


def get_chunk_store() -> ChunkStore:
    return chunk_store


def parse_num_slides(raw: Optional[str]) -> Optional[int]:
    """Clamp a requested slide count into the configured range; junk means no count."""
    if raw is None or not str(raw).strip():
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        logger.debug(f"Ignoring unparseable numSlides={raw!r}")
        return None
    return max(settings.min_slides, min(settings.max_slides, value))


def parse_extraction_mode(raw: Optional[str]) -> str:
    return raw if raw in ("extract", "ai") else "ai"


def _size_limit_error() -> OversizedUpload:
    return OversizedUpload(
        f"File size exceeds {settings.max_upload_mb}MB limit. Please upload a smaller file."
    )


async def _record_conversion(
    db: AsyncSession,
    filename: str,
    size: int,
    mode: str,
    num_slides: Optional[int],
    outcome: ConversionOutcome,
) -> None:
    try:
        db.add(
            Conversion(
                filename=filename,
                file_size_bytes=size,
                extraction_mode=mode,
                requested_slides=num_slides,
                produced_slides=len(outcome.result.slides),
                used_ai=outcome.used_ai,
                text_method=outcome.text_method,
                duration_ms=outcome.duration_ms,
            )
        )
        await db.flush()
    except Exception as e:
        logger.error(f"Failed to record conversion of '{filename}': {e}")
        await db.rollback()


@router.get("/config", response_model=UploadConfig)
async def get_upload_config():
    return UploadConfig(
        max_upload_mb=settings.max_upload_mb,
        chunk_size_bytes=settings.chunk_size_bytes,
        min_slides=settings.min_slides,
        max_slides=settings.max_slides,
        default_slides=settings.default_slides,
    )


@router.post("", response_model=ConversionResult, response_model_exclude_none=True)
async def convert_pdf(
    file: Optional[UploadFile] = File(None),
    numSlides: Optional[str] = Form(None),
    extractionMode: Optional[str] = Form(None),
    service: PdfConversionService = Depends(get_conversion_service),
    db: AsyncSession = Depends(get_db),
):
    if file is None or not file.filename:
        raise InvalidUpload("No file provided")

    if file.content_type != "application/pdf" and not file.filename.lower().endswith(".pdf"):
        raise InvalidUpload("Invalid file type. Please upload a PDF file.")

    # Reject on the declared size before reading the body
    if file.size is not None and file.size > settings.max_upload_bytes:
        raise _size_limit_error()

    file_bytes = await file.read()
    if len(file_bytes) > settings.max_upload_bytes:
        raise _size_limit_error()

    num_slides = parse_num_slides(numSlides)
    mode = parse_extraction_mode(extractionMode)

    outcome = await service.convert(file_bytes, file.filename, use_ai=mode == "ai", num_slides=num_slides)
    await _record_conversion(db, file.filename, len(file_bytes), mode, num_slides, outcome)
    return outcome.result


@router.post("/chunk", response_model=Union[ConversionResult, ChunkAck], response_model_exclude_none=True)
async def upload_chunk(
    chunk: Optional[UploadFile] = File(None),
    sessionId: Optional[str] = Form(None),
    chunkIndex: Optional[str] = Form(None),
    totalChunks: Optional[str] = Form(None),
    filename: Optional[str] = Form(None),
    numSlides: Optional[str] = Form(None),
    extractionMode: Optional[str] = Form(None),
    service: PdfConversionService = Depends(get_conversion_service),
    store: ChunkStore = Depends(get_chunk_store),
    db: AsyncSession = Depends(get_db),
):
    try:
        index = int(chunkIndex) if chunkIndex is not None else None
        total = int(totalChunks) if totalChunks is not None else None
    except ValueError:
        index = total = None

    if chunk is None or not sessionId or index is None or total is None or not filename:
        raise InvalidUpload("Missing required fields: chunk, sessionId, chunkIndex, totalChunks, filename")

    data = await chunk.read()
    added = await store.add_chunk(
        sessionId,
        index,
        total,
        filename,
        data,
        extraction_mode=parse_extraction_mode(extractionMode),
        num_slides=parse_num_slides(numSlides),
    )

    if added.payload is None:
        return ChunkAck(received_chunks=added.session.received_chunks, total_chunks=added.session.total_chunks)

    ensure_pdf(added.payload)
    session = added.session
    outcome = await service.convert(
        added.payload,
        filename,
        use_ai=session.extraction_mode == "ai",
        num_slides=session.num_slides,
    )
    await _record_conversion(
        db, filename, len(added.payload), session.extraction_mode, session.num_slides, outcome
    )
    return outcome.result
