"""
Tests for the /api/admin endpoints.
"""
import io
import os
from datetime import date

import pytest

from runclub.extensions import db
from runclub.models import Entry, Event, EventClosedDate, EventParticipant, Upload, User


@pytest.fixture
def as_admin(admin, login):
    return login(admin)


def event_payload(**overrides):
    payload = {
        "name": "July 100K",
        "start_date": "2024-07-01",
        "end_date": "2024-07-31",
        "category": "advanced",
        "gender_restriction": "both",
        "km_goal": "100",
    }
    payload.update(overrides)
    return payload


class TestAdminEvents:
    def test_create_event(self, as_admin, admin):
        r = as_admin.post("/api/admin/events", json=event_payload())

        assert r.status_code == 200
        event = db.session.get(Event, r.get_json()["eventId"])
        assert event.name == "July 100K"
        assert event.km_goal == 100
        assert event.is_ended is False
        assert event.created_by == admin.id

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"name": ""}, "Missing required fields"),
            ({"category": "beginner"}, "Invalid category"),
            ({"gender_restriction": "any"}, "Invalid gender restriction"),
            ({"end_date": "2024-07-01"}, "End date must be after start date"),
            ({"end_date": "2024-06-30"}, "End date must be after start date"),
            ({"km_goal": "-5"}, "KM goal must be a positive number"),
            ({"km_goal": "far"}, "KM goal must be a positive number"),
            ({"start_date": "July 1"}, "Invalid date format. Use YYYY-MM-DD"),
        ],
    )
    def test_create_event_validation(self, as_admin, overrides, message):
        r = as_admin.post("/api/admin/events", json=event_payload(**overrides))

        assert r.status_code == 400
        assert r.get_json() == {"ok": False, "error": message}
        assert Event.query.count() == 0

    def test_zero_goal_is_allowed(self, as_admin):
        r = as_admin.post("/api/admin/events", json=event_payload(km_goal=0))
        assert r.status_code == 200

    def test_list_events_with_creator(self, as_admin, make_event, admin):
        make_event()
        events = as_admin.get("/api/admin/events").get_json()["events"]
        assert events[0]["created_by_email"] == admin.email

    def test_update_event(self, as_admin, make_event):
        event = make_event()

        r = as_admin.put(f"/api/admin/events/{event.id}", json=event_payload(name="Renamed"))

        assert r.status_code == 200
        db.session.refresh(event)
        assert event.name == "Renamed"
        assert event.start_date == date(2024, 7, 1)

    def test_end_event_is_one_way(self, as_admin, make_event):
        event = make_event()

        as_admin.post(f"/api/admin/events/{event.id}/end")
        as_admin.put(f"/api/admin/events/{event.id}", json=event_payload())

        db.session.refresh(event)
        assert event.is_ended is True
        ended = as_admin.get("/api/admin/events/ended").get_json()["events"]
        assert [e["id"] for e in ended] == [event.id]

    def test_delete_event_cascades(self, as_admin, make_event, make_user, add_participant, add_closed_date):
        event = make_event()
        add_participant(event, make_user())
        add_closed_date(event, date(2024, 6, 15))
        event_id = event.id

        r = as_admin.delete(f"/api/admin/events/{event_id}")

        assert r.status_code == 200
        assert db.session.get(Event, event_id) is None
        assert EventParticipant.query.count() == 0
        assert EventClosedDate.query.count() == 0

    def test_unknown_event(self, as_admin):
        r = as_admin.post("/api/admin/events/404/end")
        assert r.status_code == 404


class TestAdminClosedDates:
    def test_close_list_reopen(self, as_admin, make_event):
        event = make_event()

        r = as_admin.post(f"/api/admin/events/{event.id}/close-date", json={"date": "2024-06-15"})
        assert r.status_code == 200
        assert r.get_json()["closedDateId"] > 0

        listed = as_admin.get(f"/api/admin/events/{event.id}/closed-dates").get_json()["closedDates"]
        assert [c["closed_date"] for c in listed] == ["2024-06-15"]

        r = as_admin.delete(f"/api/admin/events/{event.id}/close-date", json={"date": "2024-06-15"})
        assert r.status_code == 200
        assert EventClosedDate.query.count() == 0

    def test_close_same_date_twice(self, as_admin, make_event):
        event = make_event()
        as_admin.post(f"/api/admin/events/{event.id}/close-date", json={"date": "2024-06-15"})

        r = as_admin.post(f"/api/admin/events/{event.id}/close-date", json={"date": "2024-06-15"})

        assert r.status_code == 400
        assert r.get_json()["error"] == "This date is already closed for submissions"

    def test_close_outside_period(self, as_admin, make_event):
        event = make_event()
        r = as_admin.post(f"/api/admin/events/{event.id}/close-date", json={"date": "2024-08-01"})
        assert r.status_code == 400
        assert r.get_json()["error"] == "Date must be within event period"

    def test_reopen_unknown(self, as_admin, make_event):
        event = make_event()
        r = as_admin.delete(f"/api/admin/events/{event.id}/close-date", json={"date": "2024-06-15"})
        assert r.status_code == 404

    def test_missing_date(self, as_admin, make_event):
        event = make_event()
        r = as_admin.post(f"/api/admin/events/{event.id}/close-date", json={})
        assert r.status_code == 400
        assert r.get_json()["error"] == "Missing date"


class TestAdminEntries:
    def test_month_entries_and_top10(self, as_admin, make_user, make_entry):
        runner = make_user(email="runner@example.com")
        make_entry(runner, date(2024, 6, 5), km_run=4.0)
        make_entry(runner, date(2024, 6, 6), km_run=1.5)

        entries = as_admin.get("/api/admin/entries?month=2024-06").get_json()
        assert entries["month"] == "2024-06"
        assert {e["email"] for e in entries["entries"]} == {"runner@example.com"}

        board = as_admin.get("/api/admin/top10?month=2024-06").get_json()
        assert board["top10"] == [{"user_id": runner.id, "email": "runner@example.com", "total_km": 5.5}]

    def test_bad_month_falls_back(self, as_admin, monkeypatch):
        monkeypatch.setattr("runclub.helpers.monthly.local_today", lambda: date(2024, 3, 9))
        body = as_admin.get("/api/admin/top10?month=2024-13").get_json()
        assert body == {"month": "2024-03", "top10": []}

    def test_edit_and_delete_any_entry(self, as_admin, make_user, make_entry):
        entry = make_entry(make_user(), date(2024, 6, 5), km_run=4.0)
        entry_id = entry.id

        r = as_admin.put(f"/api/admin/entries/{entry_id}", json={"date": "2024-06-05", "km": "6"})
        assert r.status_code == 200
        db.session.refresh(entry)
        assert entry.km_run == 6.0

        r = as_admin.delete(f"/api/admin/entries/{entry_id}")
        assert r.status_code == 200
        assert db.session.get(Entry, entry_id) is None


class TestAdminUsers:
    def test_list_hides_primary_admin(self, as_admin, make_user):
        make_user(email="runner@example.com")
        users = as_admin.get("/api/admin/users").get_json()["users"]
        assert [u["email"] for u in users] == ["runner@example.com"]

    def test_update_gender_and_admin_flag(self, as_admin, make_user):
        user = make_user(gender="female")

        r = as_admin.put(f"/api/admin/users/{user.id}", json={"gender": "m", "is_admin": True})

        assert r.status_code == 200
        db.session.refresh(user)
        assert user.gender == "male"
        assert user.is_admin is True

    def test_cannot_demote_primary_admin(self, as_admin, admin):
        r = as_admin.put(f"/api/admin/users/{admin.id}", json={"is_admin": False})
        assert r.status_code == 400

    def test_cannot_delete_self(self, as_admin, admin):
        r = as_admin.delete(f"/api/admin/users/{admin.id}")
        assert r.status_code == 400
        assert r.get_json()["error"] == "Cannot delete yourself"

    def test_cannot_delete_primary_admin(self, client, make_user, login, admin):
        login(make_user(is_admin=True))
        r = client.delete(f"/api/admin/users/{admin.id}")
        assert r.status_code == 400
        assert r.get_json()["error"] == "Cannot delete primary admin"

    def test_delete_user_removes_everything(self, app, client, as_admin, make_user, make_event, login, add_participant):
        runner = make_user()
        runner_id = runner.id
        add_participant(make_event(), runner)

        login(runner)
        client.post(
            "/api/entries",
            data={"date": "2024-06-10", "km": "5", "file": (io.BytesIO(b"png"), "run.png")},
            content_type="multipart/form-data",
        )
        blob = os.path.join(app.config["UPLOAD_FOLDER"], Upload.query.one().filename)
        assert os.path.isfile(blob)

        login(User.query.filter_by(email="admin").one())
        r = client.delete(f"/api/admin/users/{runner_id}")

        assert r.get_json() == {"ok": True, "deleted": 1}
        assert db.session.get(User, runner_id) is None
        assert Entry.query.count() == 0
        assert Upload.query.count() == 0
        assert EventParticipant.query.count() == 0
        assert not os.path.exists(blob)


class TestAdminUploads:
    def test_list_and_filter(self, as_admin, client, make_user, login):
        first = make_user()
        second = make_user()
        for user in (first, second):
            login(user)
            client.post(
                "/api/uploads",
                data={"file": (io.BytesIO(b"img"), "shot.png")},
                content_type="multipart/form-data",
            )

        login(User.query.filter_by(email="admin").one())

        everything = client.get("/api/admin/uploads").get_json()["uploads"]
        assert len(everything) == 2

        mine = client.get(f"/api/admin/uploads?user_id={first.id}").get_json()["uploads"]
        assert [u["user_id"] for u in mine] == [first.id]
        assert mine[0]["entry_id"] is None

    def test_admin_can_fetch_any_file(self, as_admin, client, make_user, login):
        login(make_user())
        r = client.post(
            "/api/uploads",
            data={"file": (io.BytesIO(b"img"), "shot.png")},
            content_type="multipart/form-data",
        )
        upload_id = r.get_json()["file"]["id"]

        login(User.query.filter_by(email="admin").one())
        r = client.get(f"/api/admin/uploads/{upload_id}/file")

        assert r.status_code == 200
        assert r.data == b"img"
        r.close()
