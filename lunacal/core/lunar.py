"""
Lunisolar (农历/黄历) annotation of Gregorian days.

The lunar date itself, the solar-term instants, the statutory holiday table
and the per-day yi/ji lists come from a lunisolar source (see
``lunacal.services.lunisolar``). Everything derived from the sexagenary
cycle is computed here: stem-branch pillars, zodiac, Na-Yin, Peng-Zu
taboos, clash/sha, deity directions, the twelve day officers and duty
values, plus the static festival tables.
"""
from datetime import date, timedelta
from functools import lru_cache
from typing import Dict, List, Tuple

from lunacal.errors import OutOfRangeError
from lunacal.schemas.lunar import LunarDayInfo, SimpleLunarInfo, SolarTerm

STEMS = "甲乙丙丁戊己庚辛壬癸"
BRANCHES = "子丑寅卯辰巳午未申酉戌亥"
ZODIAC_ANIMALS = "鼠牛虎兔龙蛇马羊猴鸡狗猪"

MONTH_NAMES = ["正", "二", "三", "四", "五", "六", "七", "八", "九", "十", "冬", "腊"]
NUMERALS = "一二三四五六七八九十"
YEAR_DIGITS = "〇一二三四五六七八九"

# The twelve 节 that open the stem-branch months, starting with 寅 month.
MONTH_OPENING_TERMS = {
    name: offset
    for offset, name in enumerate(
        ["立春", "惊蛰", "清明", "立夏", "芒种", "小暑",
         "立秋", "白露", "寒露", "立冬", "大雪", "小寒"]
    )
}

DAY_OFFICERS = [
    "青龙", "明堂", "天刑", "朱雀", "金匮", "天德",
    "白虎", "玉堂", "天牢", "玄武", "司命", "勾陈",
]
AUSPICIOUS_OFFICERS = frozenset(["青龙", "明堂", "金匮", "天德", "玉堂", "司命"])
DAY_DUTIES = "建除满平定执破危成收开闭"

NA_YIN = [
    "海中金", "炉中火", "大林木", "路旁土", "剑锋金", "山头火",
    "涧下水", "城头土", "白蜡金", "杨柳木", "泉中水", "屋上土",
    "霹雳火", "松柏木", "长流水", "沙中金", "山下火", "平地木",
    "壁上土", "金箔金", "覆灯火", "天河水", "大驿土", "钗钏金",
    "桑柘木", "大溪水", "沙中土", "天上火", "石榴木", "大海水",
]

PENG_ZU_STEM = [
    "甲不开仓财物耗散", "乙不栽植千株不长", "丙不修灶必见灾殃", "丁不剃头头必生疮",
    "戊不受田田主不祥", "己不破券二比并亡", "庚不经络织机虚张", "辛不合酱主人不尝",
    "壬不泱水更难提防", "癸不词讼理弱敌强",
]
PENG_ZU_BRANCH = [
    "子不问卜自惹祸殃", "丑不冠带主不还乡", "寅不祭祀神鬼不尝", "卯不穿井水泉不香",
    "辰不哭泣必主重丧", "巳不远行财物伏藏", "午不苫盖屋主更张", "未不服药毒气入肠",
    "申不安床鬼祟入房", "酉不会客醉坐颠狂", "戌不吃犬作怪上床", "亥不嫁娶不利新郎",
]

TRIGRAM_DIRECTIONS = {
    "坎": "正北", "艮": "东北", "震": "正东", "巽": "东南",
    "离": "正南", "坤": "西南", "兑": "正西", "乾": "西北",
}
# Indexed by day stem
XI_SHEN = ["艮", "乾", "坤", "离", "巽", "艮", "乾", "坤", "离", "巽"]
FU_SHEN = ["坎", "坤", "乾", "巽", "艮", "坎", "坤", "乾", "巽", "艮"]
CAI_SHEN = ["艮", "艮", "坤", "坤", "坎", "坎", "震", "震", "离", "离"]
SHA_DIRECTIONS = ["南", "东", "北", "西"]

ZODIAC_SIGNS = [
    ((1, 20), "水瓶"), ((2, 19), "双鱼"), ((3, 21), "白羊"), ((4, 20), "金牛"),
    ((5, 21), "双子"), ((6, 22), "巨蟹"), ((7, 23), "狮子"), ((8, 23), "处女"),
    ((9, 23), "天秤"), ((10, 24), "天蝎"), ((11, 23), "射手"), ((12, 22), "摩羯"),
]

# Festival tables follow the common mainland wall-calendar selection rather
# than any one almanac library; observances not printed on such calendars
# are left out.
SOLAR_FESTIVALS: Dict[Tuple[int, int], str] = {
    (1, 1): "元旦节",
    (2, 14): "情人节",
    (3, 8): "妇女节",
    (3, 12): "植树节",
    (3, 15): "消费者权益日",
    (4, 1): "愚人节",
    (5, 1): "劳动节",
    (5, 4): "青年节",
    (6, 1): "儿童节",
    (7, 1): "建党节",
    (8, 1): "建军节",
    (9, 10): "教师节",
    (10, 1): "国庆节",
    (10, 31): "万圣节前夜",
    (11, 1): "万圣节",
    (12, 24): "平安夜",
    (12, 25): "圣诞节",
}

# (month, nth week, weekday with Monday=0)
WEEK_FESTIVALS: Dict[Tuple[int, int, int], str] = {
    (5, 2, 6): "母亲节",
    (6, 3, 6): "父亲节",
    (11, 4, 3): "感恩节",
}

# 小年 is the northern date (12-23); southern regions keep it on 12-24.
LUNAR_FESTIVALS: Dict[Tuple[int, int], str] = {
    (1, 1): "春节",
    (1, 15): "元宵节",
    (2, 2): "龙头节",
    (3, 3): "上巳节",
    (5, 5): "端午节",
    (7, 7): "七夕节",
    (7, 15): "中元节",
    (8, 15): "中秋节",
    (9, 9): "重阳节",
    (10, 1): "寒衣节",
    (10, 15): "下元节",
    (12, 8): "腊八节",
    (12, 23): "小年",
}

OTHER_FESTIVALS: Dict[Tuple[int, int], str] = {
    (1, 10): "中国人民警察节",
    (2, 2): "世界湿地日",
    (3, 5): "学雷锋纪念日",
    (3, 14): "白色情人节",
    (3, 22): "世界水日",
    (4, 22): "世界地球日",
    (4, 23): "世界读书日",
    (5, 12): "国际护士节",
    (5, 31): "世界无烟日",
    (6, 5): "世界环境日",
    (6, 26): "国际禁毒日",
    (9, 3): "中国抗日战争胜利纪念日",
    (9, 20): "国际爱牙日",
    (10, 16): "世界粮食日",
    (11, 9): "全国消防安全宣传教育日",
    (12, 1): "世界艾滋病日",
    (12, 13): "南京大屠杀死难者国家公祭日",
}


# ============ Sexagenary cycle ============

def stem_branch(index: int) -> str:
    """Name of a position in the 60-cycle (0 is 甲子)."""
    index %= 60
    return STEMS[index % 10] + BRANCHES[index % 12]


def year_cycle_index(lunar_year: int) -> int:
    # 4 CE was a 甲子 year
    return (lunar_year - 4) % 60


def day_cycle_index(day: date) -> int:
    # Julian day number - 11; 1949-10-01 is 甲子
    return (day.toordinal() + 14) % 60


def month_cycle_index(jie_year: int, month_offset: int) -> int:
    """jie_year is the year whose 立春 opened the month; offset 0 is 寅 month."""
    return ((jie_year - 4) * 12 + month_offset + 2) % 60


def day_officer(month_branch: int, day_branch: int) -> str:
    """Twelve day gods: 青龙 falls on 子 in 寅/申 months and shifts two branches per month pair."""
    start = ((month_branch - 2) % 6) * 2
    return DAY_OFFICERS[(day_branch - start) % 12]


def day_duty(month_branch: int, day_branch: int) -> str:
    # 建 falls on the day sharing the month's branch
    return DAY_DUTIES[(day_branch - month_branch) % 12]


def is_auspicious_officer(officer: str) -> bool:
    """Six yellow-path (黄道) officers make an auspicious day."""
    return officer in AUSPICIOUS_OFFICERS


# ============ Names ============

def lunar_year_name(year: int) -> str:
    return "".join(YEAR_DIGITS[int(c)] for c in str(year))


def lunar_month_name(month: int, is_leap: bool = False) -> str:
    return ("闰" if is_leap else "") + MONTH_NAMES[month - 1] + "月"


def lunar_day_name(day: int) -> str:
    if day <= 10:
        return "初" + NUMERALS[day - 1]
    if day < 20:
        return "十" + NUMERALS[day - 11]
    if day == 20:
        return "二十"
    if day < 30:
        return "廿" + NUMERALS[day - 21]
    return "三十"


def zodiac_sign(day: date) -> str:
    sign = "摩羯"
    for start, name in ZODIAC_SIGNS:
        if (day.month, day.day) >= start:
            sign = name
    return sign


def solar_festivals(day: date) -> List[str]:
    names = []
    fixed = SOLAR_FESTIVALS.get((day.month, day.day))
    if fixed:
        names.append(fixed)
    nth = (day.day - 1) // 7 + 1
    weekly = WEEK_FESTIVALS.get((day.month, nth, day.weekday()))
    if weekly:
        names.append(weekly)
    return names


class LunisolarConverter:
    """
    Gregorian date -> LunarDayInfo.

    ``source`` provides ``to_lunisolar(date)``, ``solar_terms_for_year(year)``
    and ``holiday_for(year, month, day)``; it defaults to the lunar_python
    backed source. OutOfRangeError from the source propagates unchanged.
    """

    def __init__(self, source=None):
        if source is None:
            from lunacal.services.lunisolar import LunarPythonSource

            source = LunarPythonSource()
        self.source = source

    def solar_terms(self, year: int) -> List[SolarTerm]:
        return list(self.source.solar_terms_for_year(year))

    def _terms_around(self, day: date) -> List[SolarTerm]:
        terms: List[SolarTerm] = []
        for year in (day.year - 1, day.year, day.year + 1):
            terms.extend(self.source.solar_terms_for_year(year))
        return sorted(terms, key=lambda t: t.date)

    def _month_pillar(self, day: date, terms: List[SolarTerm]) -> Tuple[int, int]:
        """Return (cycle index, branch index) of the stem-branch month containing day."""
        opened = [t for t in terms if t.name in MONTH_OPENING_TERMS and t.date <= day]
        if not opened:
            raise OutOfRangeError(f"No solar-term data before {day.isoformat()}")
        last = opened[-1]
        offset = MONTH_OPENING_TERMS[last.name]
        # 小寒 opens the last month of the previous 立春 year
        jie_year = last.date.year if offset < 11 else last.date.year - 1
        return month_cycle_index(jie_year, offset), (offset + 2) % 12

    def _lunar_festivals(self, day: date, lunar) -> List[str]:
        if lunar.is_leap:
            return []
        names = []
        fixed = LUNAR_FESTIVALS.get((lunar.month, lunar.day))
        if fixed:
            names.append(fixed)
        if lunar.month == 12 and lunar.day >= 29:
            tomorrow = self.source.to_lunisolar(day + timedelta(days=1))
            if tomorrow.month == 1 and tomorrow.day == 1 and not tomorrow.is_leap:
                names.append("除夕")
        return names

    def _other_festivals(self, day: date, terms: List[SolarTerm]) -> List[str]:
        names = []
        fixed = OTHER_FESTIVALS.get((day.month, day.day))
        if fixed:
            names.append(fixed)
        for term in terms:
            if term.name != "清明":
                continue
            if term.date == day:
                names.append("清明节")
            elif term.date == day + timedelta(days=1):
                names.append("寒食节")
        return names

    def convert(self, day: date) -> LunarDayInfo:
        """Full almanac annotation of a Gregorian day."""
        lunar = self.source.to_lunisolar(day)
        terms = self._terms_around(day)

        solar_term = next((t.name for t in terms if t.date == day), None)
        next_term = next((t for t in terms if t.date > day), None)

        year_index = year_cycle_index(lunar.year)
        month_index, month_branch = self._month_pillar(day, terms)
        day_index = day_cycle_index(day)
        stem, branch = day_index % 10, day_index % 12

        clash_stem, clash_branch = (stem + 6) % 10, (branch + 6) % 12
        officer = day_officer(month_branch, branch)

        return LunarDayInfo(
            lunar_year=lunar.year,
            lunar_month=lunar.month,
            lunar_day=lunar.day,
            lunar_year_name=lunar_year_name(lunar.year),
            lunar_month_name=lunar_month_name(lunar.month, lunar.is_leap),
            lunar_day_name=lunar_day_name(lunar.day),
            is_leap_month=lunar.is_leap,
            year_stem_branch=stem_branch(year_index),
            month_stem_branch=stem_branch(month_index),
            day_stem_branch=stem_branch(day_index),
            zodiac=ZODIAC_ANIMALS[year_index % 12],
            solar_term=solar_term,
            next_solar_term=next_term,
            zodiac_sign=zodiac_sign(day),
            festivals=solar_festivals(day),
            lunar_festivals=self._lunar_festivals(day, lunar),
            other_festivals=self._other_festivals(day, terms),
            holiday=self.source.holiday_for(day.year, day.month, day.day),
            yi=list(lunar.yi),
            ji=list(lunar.ji),
            xi_shen=TRIGRAM_DIRECTIONS[XI_SHEN[stem]],
            fu_shen=TRIGRAM_DIRECTIONS[FU_SHEN[stem]],
            cai_shen=TRIGRAM_DIRECTIONS[CAI_SHEN[stem]],
            chong=f"冲{ZODIAC_ANIMALS[clash_branch]}({STEMS[clash_stem]}{BRANCHES[clash_branch]})",
            sha="煞" + SHA_DIRECTIONS[branch % 4],
            xiu=f"{lunar.xiu}宿" if lunar.xiu else "",
            xiu_luck=lunar.xiu_luck,
            peng_zu=f"{PENG_ZU_STEM[stem]} {PENG_ZU_BRANCH[branch]}",
            na_yin=NA_YIN[day_index // 2],
            day_officer=officer,
            day_duty=day_duty(month_branch, branch),
            is_auspicious_day=is_auspicious_officer(officer),
        )

    def convert_simple(self, day: date) -> SimpleLunarInfo:
        """Cell-sized annotation; lunar festivals win over solar ones."""
        lunar = self.source.to_lunisolar(day)
        term = next(
            (t.name for t in self.source.solar_terms_for_year(day.year) if t.date == day),
            None,
        )
        festivals = self._lunar_festivals(day, lunar) + solar_festivals(day)
        holiday = self.source.holiday_for(day.year, day.month, day.day)
        return SimpleLunarInfo(
            lunar_day_name=lunar_day_name(lunar.day),
            lunar_month_name=lunar_month_name(lunar.month, lunar.is_leap),
            is_first_day=lunar.day == 1,
            solar_term=term,
            festival=festivals[0] if festivals else None,
            is_holiday=bool(holiday and not holiday.is_work),
            is_work_day=bool(holiday and holiday.is_work),
        )


@lru_cache(maxsize=1)
def default_converter() -> LunisolarConverter:
    return LunisolarConverter()
