from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from beacon.models.base import Base, new_id, utcnow


class Conversion(Base):
    """One completed PDF-to-PowerPoint conversion."""

    __tablename__ = "conversions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    # "ai" or "extract", as requested by the client
    extraction_mode: Mapped[str] = mapped_column(String(16), nullable=False)
    requested_slides: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    produced_slides: Mapped[int] = mapped_column(Integer, nullable=False)
    used_ai: Mapped[bool] = mapped_column(Boolean, default=False)
    # Text strategy that produced the text: "pymupdf", "pypdf" or "ocr"
    text_method: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    duration_ms: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=utcnow, nullable=False, index=True)
