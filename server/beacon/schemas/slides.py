from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SlideType(str, Enum):
    TITLE = "title"
    CONTENT = "content"
    QUOTE = "quote"
    TWO_COLUMN = "two-column"
    HIGHLIGHT = "highlight"
    SECTION_DIVIDER = "section-divider"


class ExtractedImage(BaseModel):
    data: str  # data URI, e.g. "data:image/png;base64,..."
    page: int = Field(ge=1)
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    description: Optional[str] = None

    @property
    def mime_type(self) -> str:
        if self.data.startswith("data:") and ";" in self.data:
            return self.data[5 : self.data.index(";")]
        return "application/octet-stream"


class Slide(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, validate_default=True)

    title: str = ""
    content: list[str] = []
    type: SlideType = SlideType.CONTENT
    quote: Optional[str] = None
    attribution: Optional[str] = None
    left_content: Optional[list[str]] = Field(default=None, alias="leftContent")
    right_content: Optional[list[str]] = Field(default=None, alias="rightContent")
    highlight: Optional[bool] = None
    images: Optional[list[ExtractedImage]] = None


class ConversionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slides: list[Slide]
    html_preview: str = Field(alias="htmlPreview")
    pptx_base64: str = Field(alias="pptxBase64")
    filename: str
    total_slides: int = Field(alias="totalSlides")


class UploadConfig(BaseModel):
    """Upload limits and slide-count bounds a client needs before sending."""

    model_config = ConfigDict(populate_by_name=True)

    max_upload_mb: int = Field(alias="maxUploadMb")
    chunk_size_bytes: int = Field(alias="chunkSizeBytes")
    min_slides: int = Field(alias="minSlides")
    max_slides: int = Field(alias="maxSlides")
    default_slides: int = Field(alias="defaultSlides")


class ChunkAck(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    received_chunks: int = Field(alias="receivedChunks")
    total_chunks: int = Field(alias="totalChunks")


class ConversionRecord(BaseModel):
    id: str
    filename: str
    file_size_bytes: int
    extraction_mode: str
    requested_slides: Optional[int]
    produced_slides: int
    used_ai: bool
    text_method: Optional[str]
    duration_ms: int
    created_at: datetime

    model_config = {"from_attributes": True}
