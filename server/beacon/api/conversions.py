from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from beacon.models.base import get_db
from beacon.models.conversion import Conversion
from beacon.schemas.slides import ConversionRecord

router = APIRouter()


@router.get("", response_model=list[ConversionRecord])
async def list_conversions(
    limit: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Conversion).order_by(Conversion.created_at.desc()).limit(limit)
    )
    return result.scalars().all()
