from datetime import date, datetime, timedelta, timezone

# Event start/end is judged on Philippine time, whatever the server locale
PH_TZ = timezone(timedelta(hours=8), name="PHT")

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def now_ph() -> datetime:
    """Wall-clock time at a fixed UTC+8 offset. Used only for event timing."""
    return datetime.now(PH_TZ)

def today_ph() -> date:
    return now_ph().date()

def local_today() -> date:
    """
    System-local calendar date. Month defaults use this clock, not PH time,
    so the two can disagree for a few hours around midnight.
    """
    return date.today()
