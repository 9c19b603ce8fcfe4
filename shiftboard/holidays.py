from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal, Protocol

HolidayType = Literal["public", "traditional", "commemorative"]


@dataclass(frozen=True)
class Holiday:
    date: date
    name: str
    type: HolidayType


class HolidayProvider(Protocol):
    def get_holidays_in_range(self, start: date, end: date) -> list[Holiday]: ...


# (month, day, name, type); lunar-calendar holidays come from an external provider.
FIXED_SOLAR_HOLIDAYS: tuple[tuple[int, int, str, HolidayType], ...] = (
    (1, 1, "Tết Dương lịch", "public"),
    (2, 14, "Ngày Valentine", "commemorative"),
    (3, 8, "Ngày Quốc tế Phụ nữ", "commemorative"),
    (4, 30, "Ngày Giải phóng miền Nam", "public"),
    (5, 1, "Ngày Quốc tế Lao động", "public"),
    (9, 2, "Ngày Quốc khánh", "public"),
    (10, 20, "Ngày Phụ nữ Việt Nam", "commemorative"),
    (11, 20, "Ngày Nhà giáo Việt Nam", "commemorative"),
    (12, 24, "Đêm Giáng sinh", "commemorative"),
    (12, 25, "Giáng sinh", "commemorative"),
)


class SolarHolidayCalendar:
    """Read-only lookup of fixed-date holidays, used to annotate the schedule only."""

    def holidays_for_year(self, year: int) -> list[Holiday]:
        return [Holiday(date(year, month, day), name, kind) for month, day, name, kind in FIXED_SOLAR_HOLIDAYS]

    def get_holidays_in_range(self, start: date, end: date) -> list[Holiday]:
        found: list[Holiday] = []
        for year in range(start.year, end.year + 1):
            found.extend(h for h in self.holidays_for_year(year) if start <= h.date <= end)
        return found


_provider: HolidayProvider = SolarHolidayCalendar()


def get_holiday_provider() -> HolidayProvider:
    return _provider
