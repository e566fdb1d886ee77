"""Find the next calendar day with no questions filed under it.

A day is available only when it holds zero records; partially filled days are
never backfilled. The answer is advisory: upload re-checks the date right
before committing.
"""
import logging
from typing import Callable

from tenq.models.question import DateStatus
from tenq.services.set_validator import DAILY_QUESTION_COUNT
from tenq.utils.dates import add_days, is_canonical_date, today

logger = logging.getLogger("tenq.date_slots")

MAX_PROBES = 365

CountFn = Callable[[str], int]


def find_next_available_date(
    count_records_for_date: CountFn,
    start: str | None = None,
    max_probes: int = MAX_PROBES,
    tz_name: str = "UTC",
) -> str:
    """Probe ``start``, ``start + 1 day``, ... and return the first empty day.

    A ``start`` that is not YYYY-MM-DD is ignored in favour of today. Falls
    back to ``start`` itself when every probed day is taken; the upload
    step then rejects it with DateConflict if it is still occupied.
    """
    if start and not is_canonical_date(start):
        logger.warning("Ignoring non-canonical start date %r; probing from today", start)
        start = None
    start = start or today(tz_name)
    day = start
    for probe in range(max_probes):
        count = count_records_for_date(day)
        if count == 0:
            logger.info("Next available date: %s (after %d probe(s))", day, probe + 1)
            return day
        day = add_days(day, 1)

    logger.warning("No free date within %d days of %s; falling back to start date", max_probes, start)
    return start


def check_date_status(date: str, count_records_for_date: CountFn) -> DateStatus:
    count = count_records_for_date(date)
    return DateStatus(
        date=date,
        question_count=count,
        available=count == 0,
        full=count >= DAILY_QUESTION_COUNT,
    )
