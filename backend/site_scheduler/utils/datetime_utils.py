"""
Working-day date utilities.

Crews work Monday through Friday; every derived task date lands on a weekday.
"""

from datetime import date, timedelta

SATURDAY = 5
SUNDAY = 6

ONE_DAY = timedelta(days=1)


def next_workday(d: date) -> date:
    """
    Roll a date forward onto a working day.

    Saturday and Sunday move to the following Monday; weekdays are returned unchanged.

    Example:
        >>> next_workday(date(2024, 3, 9))  # Saturday
        datetime.date(2024, 3, 11)
    """
    weekday = d.weekday()
    if weekday == SATURDAY:
        return d + timedelta(days=2)
    if weekday == SUNDAY:
        return d + ONE_DAY
    return d


def following_workday(d: date) -> date:
    """
    Get the first working day strictly after a date.

    This is the date a dependent task takes when it follows a unit dated d.

    Example:
        >>> following_workday(date(2024, 3, 8))  # Friday
        datetime.date(2024, 3, 11)
    """
    return next_workday(d + ONE_DAY)
