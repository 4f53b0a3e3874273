from datetime import datetime, timedelta, timezone

import pytest

from campus_events.application.services.event_service import describe_changes
from campus_events.domain.models.event import Event


def test_create_event_returns_full_projection(client, make_event):
    event, creator, _ = make_event(max_spots=3, title="Hackathon")

    assert event["title"] == "Hackathon"
    assert event["maxSpots"] == 3
    assert event["remainingSpots"] == 3
    assert event["creatorId"] == creator["id"]
    assert event["creator"] == {"id": creator["id"], "name": creator["name"], "email": creator["email"]}
    assert event["registrations"] == []


def test_create_event_requires_session(client):
    resp = client.post("/api/events", json={
        "title": "Hackathon",
        "date": datetime.now(timezone.utc).isoformat(),
        "location": "Library",
        "maxSpots": 3,
    })

    assert resp.status_code == 401


def test_create_event_rejects_zero_capacity(client, make_user, login):
    headers = login(make_user()["email"])

    resp = client.post("/api/events", json={
        "title": "Hackathon",
        "date": datetime.now(timezone.utc).isoformat(),
        "location": "Library",
        "maxSpots": 0,
    }, headers=headers)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_create_event_accepts_snake_case_body(client, make_user, login):
    headers = login(make_user()["email"])

    resp = client.post("/api/events", json={
        "title": "Hackathon",
        "date": datetime.now(timezone.utc).isoformat(),
        "location": "Library",
        "max_spots": 4,
    }, headers=headers)

    assert resp.status_code == 201
    assert resp.json()["maxSpots"] == 4


def test_new_event_notifies_admins(client, make_event, sent_mail):
    event, _, _ = make_event(title="Career Fair")

    sent_mail.assert_called_once()
    subject, _ = sent_mail.call_args.args
    assert subject == "New Event: Career Fair"
    assert sent_mail.call_args.kwargs["bcc"] == ["admin@admin.com"]


def test_list_events_is_ordered_by_date(client, make_event):
    now = datetime.now(timezone.utc)
    later, creator, _ = make_event(title="Later", date=(now + timedelta(days=10)).isoformat())
    sooner, _, _ = make_event(title="Sooner", creator=creator, date=(now + timedelta(days=1)).isoformat())

    resp = client.get("/api/events")

    assert resp.status_code == 200
    assert [e["id"] for e in resp.json()] == [sooner["id"], later["id"]]


def test_get_missing_event(client):
    resp = client.get("/api/events/404")

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "EVENT_NOT_FOUND"


def test_non_owner_cannot_update(client, make_event, make_user, login, db_session):
    event, _, _ = make_event(title="Original")
    stranger = login(make_user()["email"])

    resp = client.put(f"/api/events/{event['id']}", json={"title": "Hijacked"}, headers=stranger)

    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "FORBIDDEN"
    with db_session() as s:
        assert s.get(Event, event["id"]).title == "Original"


def test_owner_can_update(client, make_event):
    event, _, headers = make_event(title="Original")

    resp = client.put(f"/api/events/{event['id']}", json={"title": "Renamed", "location": "Auditorium"}, headers=headers)

    assert resp.status_code == 200
    assert resp.json()["title"] == "Renamed"
    assert resp.json()["location"] == "Auditorium"
    assert resp.json()["description"] == event["description"]


def test_admin_can_update_any_event(client, make_event, admin_headers):
    event, _, _ = make_event()

    resp = client.put(f"/api/events/{event['id']}", json={"maxSpots": 50}, headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["maxSpots"] == 50
    assert resp.json()["remainingSpots"] == 50


def test_capacity_cannot_drop_below_registrations(client, make_event, make_user, login):
    event, _, headers = make_event(max_spots=3)
    for _ in range(2):
        client.post(f"/api/events/{event['id']}/register", headers=login(make_user()["email"]))

    resp = client.put(f"/api/events/{event['id']}", json={"maxSpots": 1}, headers=headers)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CAPACITY_BELOW_REGISTRATIONS"
    assert client.get(f"/api/events/{event['id']}").json()["maxSpots"] == 3


def test_update_notifies_participants_and_admins(client, make_event, make_user, login, sent_mail):
    event, _, headers = make_event(location="Room A")
    attendee = make_user()
    client.post(f"/api/events/{event['id']}/register", headers=login(attendee["email"]))
    sent_mail.reset_mock()

    client.put(f"/api/events/{event['id']}", json={"location": "Room B"}, headers=headers)

    assert sent_mail.call_count == 2
    participants_call, admins_call = sent_mail.call_args_list
    assert participants_call.kwargs["bcc"] == [attendee["email"]]
    assert "Location changed from &quot;Room A&quot; to &quot;Room B&quot;" in participants_call.args[1]
    assert admins_call.args[0].startswith("[Admin]")
    assert admins_call.kwargs["bcc"] == ["admin@admin.com"]


def test_update_without_changes_sends_nothing(client, make_event, sent_mail):
    event, _, headers = make_event(title="Same")
    sent_mail.reset_mock()

    resp = client.put(f"/api/events/{event['id']}", json={"title": "Same"}, headers=headers)

    assert resp.status_code == 200
    sent_mail.assert_not_called()


def test_describe_changes_lists_each_field():
    event = Event(
        title="Old",
        description="Old description",
        date=datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc),
        location="Hall",
        max_spots=10,
    )

    changes = describe_changes(event, {
        "title": "New",
        "description": "New description",
        "date": datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc),
        "location": "Hall",
        "max_spots": 20,
    })

    assert changes == [
        'Title changed from "Old" to "New"',
        "Description updated",
        "Date changed from 01/03/2026 18:00 to 02/03/2026 09:30",
        "Capacity changed from 10 to 20 spots",
    ]


@pytest.mark.parametrize("event_id", ["0", "2147483648", "99999999999999999999"])
def test_out_of_range_event_id_is_rejected(client, event_id):
    resp = client.get(f"/api/events/{event_id}")

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
    assert resp.json()["error"]["details"]["errors"][0]["field"] == "path.event_id"


def test_out_of_range_ids_never_reach_the_database(client, make_user, login):
    headers = login(make_user()["email"])
    huge = "99999999999999999999"

    for method, path in [
        ("put", f"/api/events/{huge}"),
        ("post", f"/api/events/{huge}/register"),
        ("post", f"/api/events/{huge}/unregister"),
    ]:
        resp = getattr(client, method)(path, json={}, headers=headers)
        assert resp.status_code == 400, path


def test_capacity_above_column_range_is_rejected(client, make_user, login):
    headers = login(make_user()["email"])

    resp = client.post("/api/events", json={
        "title": "Stadium",
        "date": datetime.now(timezone.utc).isoformat(),
        "location": "Field",
        "maxSpots": 2**31,
    }, headers=headers)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
