"""
Lunisolar annotation schemas (黄历).
"""
from datetime import date
from typing import List, Optional

from pydantic import Field

from lunacal.schemas.base import CamelModel


class SolarTerm(CamelModel):
    """One of the 24 solar terms (节气) and its Gregorian date."""

    name: str
    date: date


class HolidayInfo(CamelModel):
    """Statutory holiday entry; is_work marks a compensatory working day (调休)."""

    name: str
    is_work: bool


class LunarDayInfo(CamelModel):
    """Full almanac record for a single Gregorian day."""

    # Lunar date
    lunar_year: int
    lunar_month: int
    lunar_day: int
    lunar_year_name: str = Field(..., description="二〇二五")
    lunar_month_name: str = Field(..., description="正月, 冬月, 闰六月 ...")
    lunar_day_name: str = Field(..., description="初一, 廿三 ...")
    is_leap_month: bool = False

    # Stem-branch (干支)
    year_stem_branch: str
    month_stem_branch: str
    day_stem_branch: str
    zodiac: str = Field(..., description="生肖")

    # Solar terms
    solar_term: Optional[str] = None
    next_solar_term: Optional[SolarTerm] = None

    zodiac_sign: str = Field(..., description="星座")

    # Festivals
    festivals: List[str] = Field(default_factory=list)
    lunar_festivals: List[str] = Field(default_factory=list)
    other_festivals: List[str] = Field(default_factory=list)
    holiday: Optional[HolidayInfo] = None

    # 宜忌
    yi: List[str] = Field(default_factory=list)
    ji: List[str] = Field(default_factory=list)

    # 吉神方位
    xi_shen: str
    fu_shen: str
    cai_shen: str

    # 冲煞
    chong: str
    sha: str

    # 星宿
    xiu: str
    xiu_luck: str

    peng_zu: str
    na_yin: str

    # 值日神 and 建除十二值
    day_officer: str
    day_duty: str
    is_auspicious_day: bool


class SimpleLunarInfo(CamelModel):
    """Subset rendered inside a month-grid cell."""

    lunar_day_name: str
    lunar_month_name: str
    is_first_day: bool
    solar_term: Optional[str] = None
    festival: Optional[str] = None
    is_holiday: bool = False
    is_work_day: bool = False


class GridCell(CamelModel):
    date: date
    is_current_view_period: bool
    is_today: bool
    is_selected: bool
    lunar: Optional[SimpleLunarInfo] = None
