from datetime import date

from flask import current_app
from sqlalchemy.exc import IntegrityError

from runclub.errors import (
    ConflictError,
    DateClosedError,
    NotFoundError,
    NotParticipantError,
    OutsideEventPeriodError,
    ValidationError,
    store_errors,
)
from runclub.extensions import db
from runclub.helpers.eligibility import has_joined
from runclub.models import Event, EventClosedDate, User

def in_event_period(event: Event, day: date) -> bool:
    return event.start_date <= day <= event.end_date

def is_date_closed(event_id: int, day: date) -> bool:
    return (
        EventClosedDate.query
        .filter_by(event_id=event_id, closed_date=day)
        .first()
        is not None
    )

def can_submit(event: Event, user_id: int, entry_date: date) -> None:
    """
    Gate for event entry submission. Returns None when the entry may be saved.

    Everything is read from the store at call time, so a date closed a moment
    ago is already rejected.
    """
    if event is None:
        raise NotFoundError("Event not found")

    with store_errors("Failed to check submission window"):
        if not has_joined(event.id, user_id):
            raise NotParticipantError("You are not a participant in this event")

        if not in_event_period(event, entry_date):
            raise OutsideEventPeriodError("Entry date must be within event period")

        if is_date_closed(event.id, entry_date):
            raise DateClosedError("Entry submission is closed for this date")

def close_date(event: Event, day: date, admin_id: int) -> int:
    if not in_event_period(event, day):
        raise ValidationError("Date must be within event period")

    row = EventClosedDate(event_id=event.id, closed_date=day, created_by=admin_id)
    db.session.add(row)

    with store_errors("Failed to close date"):
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise ConflictError("This date is already closed for submissions") from e

    current_app.logger.info("[CLOSED DATE] event #%s closed %s by admin #%s", event.id, day, admin_id)
    return row.id

def reopen_date(event: Event, day: date) -> None:
    with store_errors("Failed to reopen date"):
        deleted = (
            EventClosedDate.query
            .filter_by(event_id=event.id, closed_date=day)
            .delete()
        )
        db.session.commit()

    if not deleted:
        raise NotFoundError("Closed date not found")

    current_app.logger.info("[CLOSED DATE] event #%s reopened %s", event.id, day)

def list_closed_dates(event: Event) -> list[dict]:
    with store_errors("Failed to fetch closed dates"):
        rows = (
            db.session.query(EventClosedDate, User.email)
            .join(User, User.id == EventClosedDate.created_by)
            .filter(EventClosedDate.event_id == event.id)
            .order_by(EventClosedDate.closed_date.asc())
            .all()
        )

    return [
        {
            "id": ecd.id,
            "closed_date": ecd.closed_date.isoformat(),
            "created_at": ecd.created_at.isoformat() if ecd.created_at else None,
            "closed_by_email": email,
        }
        for ecd, email in rows
    ]
