"""
Lunisolar data source backed by the lunar_python library.

Only three entry points are consumed by the rest of lunacal:
``to_lunisolar``, ``solar_terms_for_year`` and ``holiday_for``. Astronomy
(new moons, solar longitude) and the yearly statutory holiday tables stay
inside the library.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from typing import List, Optional, Tuple

from lunar_python import Lunar, Solar
from lunar_python.util import HolidayUtil

from lunacal.config import settings
from lunacal.errors import OutOfRangeError
from lunacal.schemas.lunar import HolidayInfo, SolarTerm

logger = logging.getLogger(__name__)

# lunar_python keys the terms that fall outside the lunar year by pinyin
_PINYIN_TERMS = {
    "DA_XUE": "大雪",
    "DONG_ZHI": "冬至",
    "XIAO_HAN": "小寒",
    "DA_HAN": "大寒",
    "LI_CHUN": "立春",
    "YU_SHUI": "雨水",
    "JING_ZHE": "惊蛰",
}


@dataclass(frozen=True)
class LunisolarDate:
    """A lunar date plus the per-day almanac lists provided by the library."""

    year: int
    month: int
    day: int
    is_leap: bool = False
    yi: Tuple[str, ...] = field(default_factory=tuple)
    ji: Tuple[str, ...] = field(default_factory=tuple)
    xiu: str = ""
    xiu_luck: str = ""


@lru_cache(maxsize=64)
def _solar_terms(year: int) -> Tuple[SolarTerm, ...]:
    # Lunar year `year` always contains June 1st; its table spans the
    # previous 大雪 through the following 惊蛰, which covers every term
    # dated inside the Gregorian year.
    table = Lunar.fromYmd(year, 6, 1).getJieQiTable()
    terms = {}
    for key, solar in table.items():
        if solar is None or solar.getYear() != year:
            continue
        name = _PINYIN_TERMS.get(key, key)
        when = date(solar.getYear(), solar.getMonth(), solar.getDay())
        terms[(when, name)] = SolarTerm(name=name, date=when)
    return tuple(terms[k] for k in sorted(terms))


class LunarPythonSource:
    """
    Lunisolar collaborator over lunar_python.

    Dates outside [min_year, max_year] raise OutOfRangeError.
    """

    def __init__(self, min_year: Optional[int] = None, max_year: Optional[int] = None):
        self.min_year = min_year if min_year is not None else settings.lunar_min_year
        self.max_year = max_year if max_year is not None else settings.lunar_max_year

    def _check_year(self, year: int, margin: int = 0) -> None:
        if not self.min_year - margin <= year <= self.max_year + margin:
            raise OutOfRangeError(
                f"Year {year} is outside the supported range "
                f"{self.min_year}-{self.max_year}"
            )

    def to_lunisolar(self, day: date) -> LunisolarDate:
        """Convert a Gregorian date to its lunar date and almanac lists."""
        self._check_year(day.year)
        lunar = Solar.fromYmd(day.year, day.month, day.day).getLunar()
        month = lunar.getMonth()
        return LunisolarDate(
            year=lunar.getYear(),
            month=abs(month),
            day=lunar.getDay(),
            is_leap=month < 0,
            yi=tuple(lunar.getDayYi()),
            ji=tuple(lunar.getDayJi()),
            xiu=lunar.getXiu(),
            xiu_luck=lunar.getXiuLuck(),
        )

    def solar_terms_for_year(self, year: int) -> List[SolarTerm]:
        """All 24 solar terms dated inside the Gregorian year, in date order."""
        # Neighbouring years are needed for month pillars and the next term
        # of dates at the edges of the range.
        self._check_year(year, margin=1)
        return list(_solar_terms(year))

    def holiday_for(self, year: int, month: int, day: int) -> Optional[HolidayInfo]:
        """Statutory holiday or compensatory workday for the date, if any."""
        self._check_year(year)
        holiday = HolidayUtil.getHoliday(year, month, day)
        if holiday is None:
            return None
        return HolidayInfo(name=holiday.getName(), is_work=holiday.isWork())
