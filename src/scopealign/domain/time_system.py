"""Civil time to universal time, Julian date and sidereal time.

All functions are pure; inputs are assumed to be range-checked already.
"""

from scopealign.domain.models import Position, UniversalTime

DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)

# First day counted as Gregorian, as YYYYMMDD
GREGORIAN_START = 15821015

SIDEREAL_RATE = 1.002737908


def is_legacy_leap_year(year: float) -> bool:
    """Leap year test used by the calendar rollover.

    This is ``year % 4 == 0 and year % 1000 != 0``, not the Gregorian rule:
    1900 counts as a leap year and 2000 does not. Changing it shifts
    rolled-over dates by one day in those years.
    """
    return int(year) % 4 == 0 and int(year) % 1000 != 0


def civil_to_ut(position: Position) -> UniversalTime:
    """Shift the civil time of ``position`` by its timezone offset.

    Only a single forward rollover is handled: when the UT hour reaches 24 the
    date advances by one day, carrying into month and year.
    """
    year = position.year
    month = position.month
    day = position.day
    hour = position.hour + position.timezone_offset_hours

    if hour >= 24:
        hour -= 24
        day += 1

        leap = 1 if month == 2 and is_legacy_leap_year(year) else 0
        if day > DAYS_IN_MONTH[int(month) - 1] + leap:
            day = 1
            month += 1
            if month > 12:
                month = 1
                year += 1

    return UniversalTime(
        year=year,
        month=month,
        day=day,
        hour=hour,
        minute=position.minute,
        second=position.second,
    )


def julian_date(ut: UniversalTime) -> tuple[float, float]:
    """Compute the Julian date of ``ut``.

    Returns:
        Tuple of (Julian date at 0h UT, Julian date including time of day)
    """
    y = int(ut.year)
    m = int(ut.month)
    if m in (1, 2):
        y -= 1
        m += 12

    a = int(y / 100)
    b = 0
    calendar_date = ut.year * 10000 + ut.month * 100 + ut.day
    if calendar_date > GREGORIAN_START:
        b = 2 - a + int(a / 4)

    c = int(365.25 * y)
    d = int(30.6001 * (m + 1))

    jd_0h = b + c + d + ut.day + 1720994.5
    jd = jd_0h + ut.hour / 24 + ut.minute / (24 * 60) + ut.second / (24 * 60 * 60)
    return jd_0h, jd


def sidereal_time(ut: UniversalTime, julian_date_0h_ut: float) -> float:
    """Sidereal time in hours, reduced into [0, 24)."""
    t = (julian_date_0h_ut - 2415020) / 36525
    sidereal_0h = 6.6460656 + 2400.051262 * t + 0.00002581 * t * t
    sidereal = sidereal_0h + ut.decimal_hours * SIDEREAL_RATE

    while sidereal >= 24:
        sidereal -= 24
    while sidereal < 0:
        sidereal += 24
    return sidereal


def civil_to_sidereal_chain(position: Position) -> Position:
    """Return a copy of ``position`` with Julian and sidereal fields filled."""
    ut = civil_to_ut(position)
    jd_0h, jd = julian_date(ut)
    return position.model_copy(
        update={
            "julian_date_0h_ut": jd_0h,
            "julian_date": jd,
            "sidereal_time_hours": sidereal_time(ut, jd_0h),
        }
    )
