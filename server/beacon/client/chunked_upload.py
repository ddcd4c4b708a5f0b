"""Async client for the PDF-to-PPT endpoints.

Files at or below ``DIRECT_UPLOAD_LIMIT`` go to ``/api/pdf-to-ppt`` in one
request. Larger files are cut into ``CHUNK_SIZE`` byte ranges and sent one at
a time to ``/api/pdf-to-ppt/chunk`` under a single session id; the response to
the last chunk carries the conversion result.
"""

import asyncio
import base64
import logging
import math
import uuid
from pathlib import Path
from typing import Callable, Optional, Union

import httpx

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4 * 1024 * 1024
# Serverless hosts reject request bodies much above this
DIRECT_UPLOAD_LIMIT = 4 * 1024 * 1024

FileInput = Union[str, Path, bytes]
ProgressCallback = Callable[[float], None]


class UploadFailed(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _read_file(file: FileInput, metadata: dict) -> tuple[bytes, str]:
    if isinstance(file, (str, Path)):
        path = Path(file)
        return path.read_bytes(), metadata.get("filename") or path.name
    return bytes(file), metadata.get("filename") or "document.pdf"


def _form_fields(metadata: dict) -> dict[str, str]:
    fields = {"extractionMode": metadata.get("extractionMode") or "ai"}
    if metadata.get("numSlides") is not None:
        fields["numSlides"] = str(metadata["numSlides"])
    return fields


def error_message(response: httpx.Response) -> str:
    """Server error text: the JSON ``error`` field, else the raw body."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    if response.status_code == 413:
        return "File is too large to upload. Please upload a smaller file."
    text = response.text.strip()
    return text or f"Upload failed with status {response.status_code}"


def decode_pptx(result: dict) -> bytes:
    return base64.b64decode(result["pptxBase64"])


def save_pptx(result: dict, directory: Union[str, Path] = ".") -> Path:
    """Write the deck from a conversion result; returns the file path."""
    target = Path(directory) / result.get("filename", "presentation.pptx")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(decode_pptx(result))
    logger.info(f"Saved {target} ({target.stat().st_size} bytes)")
    return target


class ChunkedUploadClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        chunk_size: int = CHUNK_SIZE,
        direct_limit: int = DIRECT_UPLOAD_LIMIT,
        chunk_delay: float = 0.1,
        timeout: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.chunk_size = chunk_size
        self.direct_limit = direct_limit
        self.chunk_delay = chunk_delay
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def fetch_config(self) -> dict:
        """Server upload limits and slide-count bounds; adopts its chunk size."""
        async with self._client() as client:
            response = await client.get("/api/pdf-to-ppt/config")
        if not response.is_success:
            raise UploadFailed(error_message(response), response.status_code)
        config = response.json()
        self.chunk_size = config.get("chunkSizeBytes") or self.chunk_size
        return config

    async def convert(
        self,
        file: FileInput,
        metadata: Optional[dict] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> dict:
        """Upload directly or in chunks depending on size."""
        metadata = dict(metadata or {})
        data, filename = _read_file(file, metadata)
        metadata["filename"] = filename
        if len(data) > self.direct_limit:
            return await self.upload_large(data, metadata, on_progress)
        return await self.upload(data, metadata)

    async def upload(self, file: FileInput, metadata: Optional[dict] = None) -> dict:
        metadata = metadata or {}
        data, filename = _read_file(file, metadata)

        async with self._client() as client:
            response = await client.post(
                "/api/pdf-to-ppt",
                data=_form_fields(metadata),
                files={"file": (filename, data, "application/pdf")},
            )
        if not response.is_success:
            raise UploadFailed(error_message(response), response.status_code)
        return response.json()

    async def upload_large(
        self,
        file: FileInput,
        metadata: Optional[dict] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> dict:
        metadata = metadata or {}
        data, filename = _read_file(file, metadata)
        if not data:
            raise UploadFailed("File is empty")

        total = math.ceil(len(data) / self.chunk_size)
        session_id = str(uuid.uuid4())
        fields = _form_fields(metadata)
        logger.info(f"Uploading '{filename}' in {total} chunk(s), session {session_id}")

        async with self._client() as client:
            for index in range(total):
                chunk = data[index * self.chunk_size:(index + 1) * self.chunk_size]
                response = await client.post(
                    "/api/pdf-to-ppt/chunk",
                    data={
                        **fields,
                        "sessionId": session_id,
                        "chunkIndex": str(index),
                        "totalChunks": str(total),
                        "filename": filename,
                    },
                    files={"chunk": (f"{filename}.part{index}", chunk, "application/octet-stream")},
                )
                if not response.is_success:
                    message = error_message(response)
                    logger.error(f"Chunk {index + 1}/{total} rejected: {message}")
                    raise UploadFailed(message, response.status_code)

                body = response.json()
                if "slides" in body:
                    if on_progress:
                        on_progress(100.0)
                    return body

                if on_progress:
                    on_progress((index + 1) / total * 100)
                if self.chunk_delay and index + 1 < total:
                    await asyncio.sleep(self.chunk_delay)

        raise UploadFailed("Upload finished without a conversion result")
