import threading

from campus_events.application.services.registration_service import register_for_event
from campus_events.core.exceptions import EventFullError
from campus_events.domain.models.registration import Registration
from campus_events.domain.schemas.auth import VerifiedSession
from campus_events.infrastructure.repositories.event_repository import SQLAlchemyEventRepository


def _remaining(client, event_id):
    return client.get(f"/api/events/{event_id}").json()["remainingSpots"]


def test_register_returns_registration_with_user(client, make_event, make_user, login):
    event, _, _ = make_event()
    attendee = make_user(name="Alan Turing")

    resp = client.post(f"/api/events/{event['id']}/register", headers=login(attendee["email"]))

    assert resp.status_code == 201
    body = resp.json()
    assert body["eventId"] == event["id"]
    assert body["userId"] == attendee["id"]
    assert body["user"] == {"id": attendee["id"], "name": "Alan Turing", "email": attendee["email"]}


def test_register_requires_session(client, make_event):
    event, _, _ = make_event()

    resp = client.post(f"/api/events/{event['id']}/register")

    assert resp.status_code == 401


def test_register_for_missing_event(client, make_user, login):
    user = make_user()

    resp = client.post("/api/events/999/register", headers=login(user["email"]))

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "EVENT_NOT_FOUND"


def test_duplicate_registration_is_rejected(client, make_event, make_user, login, db_session):
    event, _, _ = make_event()
    headers = login(make_user()["email"])

    assert client.post(f"/api/events/{event['id']}/register", headers=headers).status_code == 201
    resp = client.post(f"/api/events/{event['id']}/register", headers=headers)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "ALREADY_REGISTERED"
    with db_session() as s:
        assert s.query(Registration).filter(Registration.event_id == event["id"]).count() == 1


def test_remaining_spots_round_trip(client, make_event, make_user, login):
    event, _, _ = make_event(max_spots=5)
    headers = login(make_user()["email"])

    assert _remaining(client, event["id"]) == 5
    client.post(f"/api/events/{event['id']}/register", headers=headers)
    assert _remaining(client, event["id"]) == 4
    client.post(f"/api/events/{event['id']}/unregister", headers=headers)
    assert _remaining(client, event["id"]) == 5


def test_last_spot_scenario(client, make_event, make_user, login):
    event, _, _ = make_event(max_spots=1)
    a = login(make_user()["email"])
    b = login(make_user()["email"])
    register = f"/api/events/{event['id']}/register"

    assert client.post(register, headers=a).status_code == 201
    assert _remaining(client, event["id"]) == 0

    resp = client.post(register, headers=b)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "EVENT_FULL"

    assert client.post(f"/api/events/{event['id']}/unregister", headers=a).status_code == 200
    assert _remaining(client, event["id"]) == 1

    assert client.post(register, headers=b).status_code == 201
    assert _remaining(client, event["id"]) == 0


def test_unregister_twice_fails(client, make_event, make_user, login):
    event, _, _ = make_event()
    headers = login(make_user()["email"])
    client.post(f"/api/events/{event['id']}/register", headers=headers)

    first = client.post(f"/api/events/{event['id']}/unregister", headers=headers)
    second = client.post(f"/api/events/{event['id']}/unregister", headers=headers)

    assert first.status_code == 200
    assert first.json() == {"message": "Unregistered successfully"}
    assert second.status_code == 404
    assert second.json()["error"]["code"] == "REGISTRATION_NOT_FOUND"


def test_organizer_is_emailed_on_registration(client, make_event, make_user, login, sent_mail):
    event, creator, _ = make_event()
    sent_mail.reset_mock()
    attendee = make_user(name="Katherine Johnson")

    client.post(f"/api/events/{event['id']}/register", headers=login(attendee["email"]))

    sent_mail.assert_called_once()
    subject, html = sent_mail.call_args.args
    assert subject == f"New Registration for {event['title']}"
    assert "Katherine Johnson" in html
    assert sent_mail.call_args.kwargs["to"] == [creator["email"]]


def test_mail_failure_does_not_fail_registration(client, make_event, make_user, login, sent_mail):
    event, _, _ = make_event()
    sent_mail.side_effect = OSError("relay down")

    resp = client.post(f"/api/events/{event['id']}/register", headers=login(make_user()["email"]))

    assert resp.status_code == 201


def test_concurrent_registrations_for_last_spot(app, make_event, make_user, mocker):
    event, _, _ = make_event(max_spots=1)
    users = [make_user() for _ in range(6)]
    barrier = threading.Barrier(len(users))
    outcomes = []
    lock = threading.Lock()

    def attempt(user):
        session = VerifiedSession(user_id=user["id"], email=user["email"], name=user["name"], role="USER")
        db = app.state.db.session()
        try:
            barrier.wait()
            register_for_event(SQLAlchemyEventRepository(db), mocker.Mock(), event["id"], session)
            result = "ok"
        except EventFullError:
            result = "full"
        except Exception as exc:
            result = type(exc).__name__
        finally:
            db.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(u,)) for u in users]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["full"] * 5 + ["ok"]

    db = app.state.db.session()
    try:
        assert db.query(Registration).filter(Registration.event_id == event["id"]).count() == 1
    finally:
        db.close()
