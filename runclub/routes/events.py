from flask import Blueprint, g, jsonify, request

from runclub.errors import NotParticipantError
from runclub.helpers.auth import login_required
from runclub.helpers.eligibility import get_event_or_404, has_joined, try_join
from runclub.helpers.entries import entry_rows, parse_entry_fields, submit_entry
from runclub.helpers.events import list_ended_events_for_user, list_events_for_user, list_participants
from runclub.helpers.parsing import parse_id
from runclub.helpers.ranking import compute_ranking, event_to_dict
from runclub.helpers.submission import can_submit
from runclub.helpers.time import now_ph
from runclub.helpers.uploads import require_file
from runclub.models import Entry

events_bp = Blueprint("events", __name__)

@events_bp.route("/api/events")
@login_required
def available_events():
    """
    Events that have not finished yet (end_date >= today in PH time),
    with has_joined and the viewer's rank/totals for each.
    """
    today = now_ph().date()
    return jsonify({"events": list_events_for_user(g.user.id, today)})

@events_bp.route("/api/events/ended")
@login_required
def ended_events():
    return jsonify({"events": list_ended_events_for_user(g.user.id)})

@events_bp.route("/api/events/<event_id>/join", methods=["POST"])
@login_required
def join_event(event_id):
    event_id = parse_id(event_id, "event ID")
    event = get_event_or_404(event_id)

    participant_id = try_join(event, g.user, now_ph())
    return jsonify({"ok": True, "participantId": participant_id})

@events_bp.route("/api/events/<event_id>/participants")
@login_required
def event_participants(event_id):
    event_id = parse_id(event_id, "event ID")
    event = get_event_or_404(event_id)
    return jsonify({"participants": list_participants(event)})

@events_bp.route("/api/events/<event_id>/ranking")
@login_required
def event_ranking(event_id):
    event_id = parse_id(event_id, "event ID")
    event = get_event_or_404(event_id)
    return jsonify(compute_ranking(event))

@events_bp.route("/api/events/<event_id>/entries")
@login_required
def my_event_entries(event_id):
    """The viewer's entries inside the event window (inclusive both ends)."""
    event_id = parse_id(event_id, "event ID")
    event = get_event_or_404(event_id)

    if not has_joined(event.id, g.user.id):
        raise NotParticipantError("You are not a participant in this event")

    rows = entry_rows(
        Entry.entry_date >= event.start_date,
        Entry.entry_date <= event.end_date,
        user_id=g.user.id,
    )
    return jsonify({"entries": rows, "event": event_to_dict(event)})

@events_bp.route("/api/events/<event_id>/entry", methods=["POST"])
@login_required
def submit_event_entry(event_id):
    """
    Same multipart form as /api/entries, gated by can_submit():
    participant, inside the event period, date not closed by an admin.
    """
    event_id = parse_id(event_id, "event ID")
    fields = parse_entry_fields(request.form)
    file = require_file(request.files)

    event = get_event_or_404(event_id)
    can_submit(event, g.user.id, fields["entry_date"])

    entry_id = submit_entry(g.user.id, fields, file)
    return jsonify({"ok": True, "entryId": entry_id})
