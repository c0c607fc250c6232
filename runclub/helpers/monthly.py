import re
from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date
from typing import Optional

from sqlalchemy import Numeric, cast, func

from runclub.errors import store_errors
from runclub.extensions import db
from runclub.helpers.entries import entry_rows
from runclub.helpers.time import local_today
from runclub.models import Entry, User

MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
TOP_N = 10

@dataclass(frozen=True)
class MonthWindow:
    """[start, end) - start inclusive, end exclusive."""
    start: date
    end: date

    @property
    def label(self) -> str:
        return self.start.strftime("%Y-%m")

def month_window(year: int, month: int) -> MonthWindow:
    start = date(year, month, 1)
    if month == 12:
        end = date(year + 1, 1, 1)
    else:
        end = date(year, month + 1, 1)
    return MonthWindow(start, end)

def resolve_month(token: Optional[str], today: Optional[date] = None) -> MonthWindow:
    """
    "YYYY-MM" -> that month. Missing or malformed -> the current month on the
    system-local clock (not PH time). Never raises.
    """
    token = (token or "").strip()
    if MONTH_RE.match(token):
        year, month = int(token[:4]), int(token[5:])
        if 1 <= month <= 12 and MINYEAR <= year < MAXYEAR:
            return month_window(year, month)

    today = today or local_today()
    return month_window(today.year, today.month)

def list_entries(window: MonthWindow, user_id: Optional[int] = None) -> list[dict]:
    """
    Raw entry rows in the month. With user_id, just that user's; without,
    everyone's with user_id/email attached (admin view).
    """
    return entry_rows(
        Entry.entry_date >= window.start,
        Entry.entry_date < window.end,
        user_id=user_id,
        include_user=user_id is None,
    )

def top10(window: MonthWindow) -> list[dict]:
    """
    Highest km totals in the month, rounded to 2dp. Users without entries in
    the month do not appear.
    """
    # NUMERIC cast: Postgres has no round(double precision, int)
    total_km = func.round(cast(func.sum(Entry.km_run), Numeric), 2).label("total_km")

    q = (
        db.session.query(User.id, User.email, total_km)
        .select_from(Entry)
        .join(User, User.id == Entry.user_id)
        .filter(Entry.entry_date >= window.start, Entry.entry_date < window.end)
        .group_by(User.id, User.email)
        .order_by(total_km.desc(), User.email.asc())
        .limit(TOP_N)
    )

    with store_errors("Failed to compute top 10"):
        rows = q.all()

    return [
        {"user_id": r.id, "email": r.email, "total_km": round(float(r.total_km), 2)}
        for r in rows
    ]
