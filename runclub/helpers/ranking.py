from typing import Optional

from sqlalchemy import and_, distinct, func

from runclub.errors import NotFoundError, store_errors
from runclub.extensions import db
from runclub.models import Entry, Event, EventParticipant, User

def event_to_dict(event: Event) -> dict:
    return {
        "id": event.id,
        "name": event.name,
        "start_date": event.start_date.isoformat(),
        "end_date": event.end_date.isoformat(),
        "category": event.category,
        "gender_restriction": event.gender_restriction,
        "km_goal": event.km_goal,
        "is_ended": bool(event.is_ended),
        "created_by": event.created_by,
        "created_at": event.created_at.isoformat() if event.created_at else None,
    }

def sort_ranking_rows(rows: list[dict]) -> list[dict]:
    """
    The one ordering used by both the public ranking and personal standing:
    total_km desc, then email asc, then user id asc.

    Each row gets its 1-based position as "rank". Equal totals do NOT share a
    rank; the email tie-break decides.
    """
    rows.sort(key=lambda r: (-r["total_km"], r["email"], r["id"]))

    for pos, row in enumerate(rows, start=1):
        row["rank"] = pos

    return rows

def participant_totals(event: Event) -> list[dict]:
    """
    Every participant of `event` with their entries inside the ranking
    window [start_date, end_date] (inclusive both ends) aggregated.

    Participants with no qualifying entries still appear, with zero totals.
    Totals are rounded to 2dp before sorting, so 0.1 + 0.2 ties with 0.3.
    """
    in_window = and_(
        Entry.user_id == EventParticipant.user_id,
        Entry.entry_date >= event.start_date,
        Entry.entry_date <= event.end_date,
    )

    q = (
        db.session.query(
            User.id,
            User.email,
            func.coalesce(func.sum(Entry.km_run), 0).label("total_km"),
            func.count(Entry.id).label("entry_count"),
            func.coalesce(func.sum(Entry.hours), 0).label("total_hours"),
            func.count(distinct(Entry.entry_date)).label("total_days"),
        )
        .select_from(EventParticipant)
        .join(User, User.id == EventParticipant.user_id)
        .outerjoin(Entry, in_window)
        .filter(EventParticipant.event_id == event.id)
        .group_by(User.id, User.email)
    )

    with store_errors("Failed to fetch ranking"):
        results = q.all()

    rows = [
        {
            "id": r.id,
            "email": r.email,
            "total_km": round(float(r.total_km or 0), 2),
            "entry_count": int(r.entry_count or 0),
            "total_hours": round(float(r.total_hours or 0), 2),
            "total_days": int(r.total_days or 0),
        }
        for r in results
    ]

    return sort_ranking_rows(rows)

def compute_ranking(event: Optional[Event]) -> dict:
    if event is None:
        raise NotFoundError("Event not found")

    return {
        "event": event_to_dict(event),
        "ranking": participant_totals(event),
        "goal": event.km_goal,
    }

def standing_from_rows(rows: list[dict], user_id: int) -> dict:
    for row in rows:
        if row["id"] == user_id:
            return {
                "rank": row["rank"],
                "total_participants": len(rows),
                "total_km": row["total_km"],
                "total_hours": row["total_hours"],
                "total_days": row["total_days"],
            }

    # Not a participant: no rank, but the field count is still real
    return {
        "rank": None,
        "total_participants": len(rows),
        "total_km": 0.0,
        "total_hours": 0.0,
        "total_days": 0,
    }

def compute_user_standing(event: Optional[Event], user_id: int) -> dict:
    if event is None:
        raise NotFoundError("Event not found")
    return standing_from_rows(participant_totals(event), user_id)
