"""
Lunisolar almanac and calendar grid endpoints.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query

from lunacal import schemas
from lunacal.core.dates import ViewMode, today
from lunacal.core.grid import build_cells
from lunacal.core.lunar import LunisolarConverter, default_converter
from lunacal.errors import OutOfRangeError

router = APIRouter()


def get_converter() -> LunisolarConverter:
    """Dependency returning the shared lunisolar converter."""
    return default_converter()


def _out_of_range(e: OutOfRangeError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=e.message,
    )


@router.get("/lunar/solar-terms/{year}", response_model=List[schemas.SolarTerm])
async def solar_terms(year: int, converter: LunisolarConverter = Depends(get_converter)):
    """The 24 solar terms falling in a Gregorian year, in date order."""
    try:
        return converter.solar_terms(year)
    except OutOfRangeError as e:
        raise _out_of_range(e)


@router.get("/lunar/{day}", response_model=schemas.LunarDayInfo)
async def lunar_info(day: date, converter: LunisolarConverter = Depends(get_converter)):
    """Full almanac information for a day."""
    try:
        return converter.convert(day)
    except OutOfRangeError as e:
        raise _out_of_range(e)


@router.get("/lunar/{day}/simple", response_model=schemas.SimpleLunarInfo)
async def simple_lunar_info(day: date, converter: LunisolarConverter = Depends(get_converter)):
    """Compact lunar label for a calendar cell."""
    try:
        return converter.convert_simple(day)
    except OutOfRangeError as e:
        raise _out_of_range(e)


@router.get("/grid", response_model=List[schemas.GridCell])
async def grid(
    day: Optional[date] = Query(None, alias="date", description="Selected date, defaults to today"),
    view: ViewMode = Query(ViewMode.MONTH, description="month, week or day"),
    converter: LunisolarConverter = Depends(get_converter),
):
    """Calendar cells for the view containing the selected date."""
    current = today()
    try:
        return build_cells(day or current, view, current, converter)
    except OutOfRangeError as e:
        raise _out_of_range(e)
