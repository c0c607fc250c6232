import math
from datetime import date

from flask import current_app

from runclub.errors import ValidationError, store_errors
from runclub.extensions import db
from runclub.helpers.parsing import parse_iso_date
from runclub.helpers.ranking import event_to_dict, participant_totals, standing_from_rows
from runclub.models import CATEGORIES, GENDER_RESTRICTIONS, Event, EventParticipant, User

REQUIRED_EVENT_FIELDS = ("name", "start_date", "end_date", "category", "gender_restriction", "km_goal")

def parse_event_payload(data) -> dict:
    """
    Validate the admin create/edit form.

    Rules:
    - every field present (km_goal may be 0 but not blank)
    - category in CATEGORIES, gender_restriction in GENDER_RESTRICTIONS
    - start_date strictly before end_date
    - km_goal a number >= 0
    """
    for field in REQUIRED_EVENT_FIELDS:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError("Missing required fields")

    category = str(data.get("category")).strip().lower()
    if category not in CATEGORIES:
        raise ValidationError("Invalid category")

    gender_restriction = str(data.get("gender_restriction")).strip().lower()
    if gender_restriction not in GENDER_RESTRICTIONS:
        raise ValidationError("Invalid gender restriction")

    start_date = parse_iso_date(data.get("start_date"), "Missing required fields")
    end_date = parse_iso_date(data.get("end_date"), "Missing required fields")
    if start_date >= end_date:
        raise ValidationError("End date must be after start date")

    try:
        km_goal = float(data.get("km_goal"))
    except (TypeError, ValueError):
        raise ValidationError("KM goal must be a positive number")
    if not math.isfinite(km_goal) or km_goal < 0:
        raise ValidationError("KM goal must be a positive number")

    return {
        "name": str(data.get("name")).strip(),
        "start_date": start_date,
        "end_date": end_date,
        "category": category,
        "gender_restriction": gender_restriction,
        "km_goal": km_goal,
    }

def create_event(fields: dict, admin_id: int) -> Event:
    event = Event(created_by=admin_id, **fields)
    db.session.add(event)
    with store_errors("Failed to create event"):
        db.session.commit()

    current_app.logger.info("[EVENT] admin #%s created event #%s (%s)", admin_id, event.id, event.name)
    return event

def update_event(event: Event, fields: dict) -> None:
    for key, value in fields.items():
        setattr(event, key, value)
    with store_errors("Failed to update event"):
        db.session.commit()

    current_app.logger.info("[EVENT] event #%s updated", event.id)

def end_event(event: Event) -> None:
    """One-way: there is no operation that clears is_ended."""
    event.is_ended = True
    with store_errors("Failed to end event"):
        db.session.commit()

    current_app.logger.info("[EVENT] event #%s marked ended", event.id)

def delete_event(event: Event) -> None:
    event_id = event.id
    db.session.delete(event)
    with store_errors("Failed to delete event"):
        db.session.commit()

    current_app.logger.info("[EVENT] event #%s deleted", event_id)

def _with_creator(rows) -> list[dict]:
    out = []
    for event, creator_email in rows:
        d = event_to_dict(event)
        d["created_by_email"] = creator_email
        out.append(d)
    return out

def list_all_events() -> list[dict]:
    with store_errors("Failed to fetch events"):
        rows = (
            db.session.query(Event, User.email)
            .join(User, User.id == Event.created_by)
            .order_by(Event.created_at.desc(), Event.id.desc())
            .all()
        )
    return _with_creator(rows)

def list_ended_events() -> list[dict]:
    with store_errors("Failed to fetch ended events"):
        rows = (
            db.session.query(Event, User.email)
            .join(User, User.id == Event.created_by)
            .filter(Event.is_ended.is_(True))
            .order_by(Event.end_date.desc(), Event.id.desc())
            .all()
        )
    return _with_creator(rows)

def _joined_event_ids(user_id: int) -> set:
    return {
        event_id
        for (event_id,) in db.session.query(EventParticipant.event_id)
        .filter(EventParticipant.user_id == user_id)
        .all()
    }

def list_ended_events_for_user(user_id: int) -> list[dict]:
    with store_errors("Failed to fetch ended events"):
        events = (
            Event.query
            .filter(Event.is_ended.is_(True))
            .order_by(Event.end_date.desc(), Event.id.desc())
            .all()
        )
        joined = _joined_event_ids(user_id)

    out = []
    for event in events:
        d = event_to_dict(event)
        d["has_joined"] = event.id in joined
        out.append(d)
    return out

def list_events_for_user(user_id: int, today: date) -> list[dict]:
    """
    Events still running or upcoming (end_date >= today, PH date), earliest
    start first, each with the viewer's standing.

    Standing comes from the same sorted ranking as /ranking, so user_rank
    always matches the viewer's position there.
    """
    with store_errors("Failed to fetch events"):
        rows = (
            db.session.query(Event, User.email)
            .join(User, User.id == Event.created_by)
            .filter(Event.end_date >= today)
            .order_by(Event.start_date.asc(), Event.id.asc())
            .all()
        )
        joined = _joined_event_ids(user_id)

    out = []
    for event, creator_email in rows:
        d = event_to_dict(event)
        d["created_by_email"] = creator_email
        d["has_joined"] = event.id in joined

        standing = standing_from_rows(participant_totals(event), user_id)
        d["user_rank"] = standing["rank"] if d["has_joined"] else None
        d["total_participants"] = standing["total_participants"]
        d["user_total_km"] = standing["total_km"]
        d["user_total_hours"] = standing["total_hours"]
        d["user_total_days"] = standing["total_days"]

        out.append(d)

    return out

def list_participants(event: Event) -> list[dict]:
    with store_errors("Failed to fetch participants"):
        rows = (
            db.session.query(User.id, User.email, EventParticipant.joined_at)
            .select_from(EventParticipant)
            .join(User, User.id == EventParticipant.user_id)
            .filter(EventParticipant.event_id == event.id)
            .order_by(EventParticipant.joined_at.asc(), EventParticipant.id.asc())
            .all()
        )

    return [
        {
            "id": r.id,
            "email": r.email,
            "joined_at": r.joined_at.isoformat() if r.joined_at else None,
        }
        for r in rows
    ]
