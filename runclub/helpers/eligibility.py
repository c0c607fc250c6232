from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from runclub.errors import (
    AlreadyJoinedError,
    GenderIneligibleError,
    NotFoundError,
    OutsideWindowError,
    store_errors,
)
from runclub.extensions import db
from runclub.models import Event, EventParticipant, User

def get_event_or_404(event_id: int) -> Event:
    event = db.session.get(Event, event_id)
    if not event:
        raise NotFoundError("Event not found")
    return event

def has_joined(event_id: int, user_id: int) -> bool:
    return (
        EventParticipant.query
        .filter_by(event_id=event_id, user_id=user_id)
        .first()
        is not None
    )

def check_join_window(event: Event, now_ph: datetime) -> None:
    """Calendar-date comparison: start_date <= PH today <= end_date."""
    today = now_ph.date()
    if today < event.start_date:
        raise OutsideWindowError("Event has not started yet")
    if today > event.end_date:
        raise OutsideWindowError("Event has already ended")

def check_gender(event: Event, user: User) -> None:
    restriction = event.gender_restriction
    if restriction == "both":
        return
    if user.gender != restriction:
        raise GenderIneligibleError(
            f"This event is exclusive to {restriction} participants only. "
            f"You are {user.gender or 'unspecified'}."
        )

def try_join(event: Optional[Event], user: User, now_ph: datetime) -> int:
    """
    Join `user` to `event` and return the new participant id.

    Checks, first failure wins:
      1. event exists
      2. PH today is inside [start_date, end_date]
      3. not already a participant
      4. gender matches the event restriction (unless "both")

    The pre-check in (3) can lose a race against a concurrent join; the
    unique (event_id, user_id) constraint then fires and is reported as the
    same AlreadyJoinedError.
    """
    if event is None:
        raise NotFoundError("Event not found")

    check_join_window(event, now_ph)

    with store_errors("Failed to join event"):
        if has_joined(event.id, user.id):
            raise AlreadyJoinedError("You have already joined this event")

        check_gender(event, user)

        participant = EventParticipant(event_id=event.id, user_id=user.id)
        db.session.add(participant)
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            current_app.logger.info(
                "[EVENT JOIN] duplicate join caught by constraint: user #%s event #%s",
                user.id, event.id,
            )
            raise AlreadyJoinedError("You have already joined this event") from e

    current_app.logger.info("[EVENT JOIN] user #%s joined event #%s", user.id, event.id)
    return participant.id
