"""
Tests for challenges: enrolment, join notifications, phase filtering and
progress derived from participants' updates.
"""
from datetime import datetime, timedelta, timezone

import pytest

from ecopledge.core.errors import AlreadyJoinedError, AuthorizationDeniedError, NotFoundError
from ecopledge.models.notification import Notification
from ecopledge.models.progress_update import ProgressUpdate
from ecopledge.services import challenges as service
from ecopledge.services.challenges import ChallengePhase


def _utcnow():
    return datetime.now(tz=timezone.utc)


def _challenge(db, creator, starts_in_days=-1, lasts_days=7, **fields):
    start = _utcnow() + timedelta(days=starts_in_days)
    return service.create_challenge(
        db,
        creator,
        title=fields.pop("title", "Car-free week"),
        description=fields.pop("description", "Leave the car at home for seven days."),
        start_date=start,
        end_date=start + timedelta(days=lasts_days),
        target_carbon_savings=fields.pop("target_carbon_savings", 50.0),
        **fields,
    )


class TestService:
    def test_creator_is_first_participant(self, db, make_user):
        creator = make_user()
        c = _challenge(db, creator)
        assert c.participant_ids == [creator.id]
        assert service.phase_of(c) == ChallengePhase.ACTIVE

    def test_join_notifies_creator(self, db, make_user):
        creator, joiner = make_user(), make_user(name="Robin")
        c = _challenge(db, creator, title="Meatless month")

        joined = service.join_challenge(db, c.id, joiner)
        assert joined.participant_ids == [creator.id, joiner.id]

        db.expire_all()
        notes = db.query(Notification).filter(Notification.user_id == creator.id).all()
        assert [(n.type, n.message) for n in notes] == [
            ("challenge", "Robin joined your challenge: Meatless month"),
        ]

    def test_double_join_rejected(self, db, make_user):
        creator, joiner = make_user(), make_user()
        c = _challenge(db, creator)
        service.join_challenge(db, c.id, joiner)
        with pytest.raises(AlreadyJoinedError):
            service.join_challenge(db, c.id, joiner)
        with pytest.raises(AlreadyJoinedError):
            service.join_challenge(db, c.id, creator)

    def test_private_challenge_hidden_and_closed(self, db, make_user):
        creator, outsider = make_user(), make_user()
        c = _challenge(db, creator, visibility="private")
        assert service.get_challenge(db, c.id, creator).id == c.id
        with pytest.raises(AuthorizationDeniedError):
            service.get_challenge(db, c.id, outsider)
        with pytest.raises(AuthorizationDeniedError):
            service.join_challenge(db, c.id, outsider)

    def test_missing(self, db, make_user):
        with pytest.raises(NotFoundError):
            service.get_challenge(db, 987654)
        with pytest.raises(NotFoundError):
            service.join_challenge(db, 987654, make_user())

    def test_phase_filters(self, db, make_user):
        creator = make_user()
        active = _challenge(db, creator)
        upcoming = _challenge(db, creator, starts_in_days=3)
        done = _challenge(db, creator, starts_in_days=-20, lasts_days=5)
        hidden = _challenge(db, creator, visibility="private")

        def ids(phase):
            return {c.id for c in service.list_challenges(db, phase=phase, limit=500)}

        assert active.id in ids(ChallengePhase.ACTIVE)
        assert upcoming.id not in ids(ChallengePhase.ACTIVE)
        assert upcoming.id in ids(ChallengePhase.UPCOMING)
        assert done.id in ids(ChallengePhase.COMPLETED)
        assert done.id not in ids(ChallengePhase.ACTIVE)
        assert {active.id, upcoming.id, done.id} <= ids(ChallengePhase.ALL)
        assert hidden.id not in ids(ChallengePhase.ALL)

    def test_progress_counts_participants_inside_window(self, db, make_user, make_commitment):
        creator, joiner, outsider = make_user(), make_user(), make_user()
        c = _challenge(db, creator, starts_in_days=-2, lasts_days=5)
        service.join_challenge(db, c.id, joiner)

        now = _utcnow()
        for user, delta, when in [
            (creator, 2.5, now - timedelta(days=1)),
            (joiner, 4.0, now),
            (joiner, 100.0, now - timedelta(days=10)),
            (outsider, 7.0, now),
        ]:
            commitment = make_commitment(user)
            db.add(ProgressUpdate(
                commitment_id=commitment.id,
                user_id=user.id,
                amount="logged",
                delta_carbon_saved=delta,
                date=when,
            ))
        db.commit()

        assert service.challenge_progress(db, c) == pytest.approx(6.5)


class TestEndpoints:
    def _payload(self, **overrides):
        start = _utcnow() - timedelta(hours=1)
        payload = {
            "title": "  Plastic-free June  ",
            "description": "Skip single-use plastic for a month.",
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=30)).isoformat(),
            "target_carbon_savings": 120,
        }
        payload.update(overrides)
        return payload

    def test_create_get_join(self, client, make_user, auth):
        creator, joiner = make_user(), make_user()
        r = client.post("/challenges", json=self._payload(), headers=auth(creator))
        assert r.status_code == 201
        body = r.json()
        assert body["title"] == "Plastic-free June"
        assert body["phase"] == "active"
        assert body["visibility"] == "public"
        assert (body["participant_ids"], body["participant_count"]) == ([creator.id], 1)
        assert body["current_carbon_savings"] == 0

        cid = body["id"]
        r = client.post(f"/challenges/{cid}/join", headers=auth(joiner))
        assert r.status_code == 200
        assert r.json()["participant_count"] == 2

        r = client.post(f"/challenges/{cid}/join", headers=auth(joiner))
        assert r.status_code == 409
        assert r.json()["code"] == "ALREADY_JOINED"

        assert client.get(f"/challenges/{cid}").json()["participant_ids"] == [creator.id, joiner.id]
        listed = client.get("/challenges", params={"limit": 100}).json()["items"]
        assert cid in [c["id"] for c in listed]

        notes = client.get("/notifications", headers=auth(creator)).json()["items"]
        assert notes[0]["type"] == "challenge"
        assert notes[0]["data"] == {"challenge_id": cid}

    def test_create_requires_auth(self, client):
        assert client.post("/challenges", json=self._payload()).status_code == 401

    @pytest.mark.parametrize("overrides", [
        {"title": "Go"},
        {"description": "short"},
        {"target_carbon_savings": -1},
    ])
    def test_invalid_payload(self, client, make_user, auth, overrides):
        r = client.post("/challenges", json=self._payload(**overrides), headers=auth(make_user()))
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_end_must_follow_start(self, client, make_user, auth):
        start = _utcnow()
        r = client.post(
            "/challenges",
            json=self._payload(start_date=start.isoformat(), end_date=start.isoformat()),
            headers=auth(make_user()),
        )
        assert r.status_code == 422

    def test_unknown_status_filter(self, client):
        assert client.get("/challenges", params={"status": "someday"}).status_code == 422

    def test_missing_challenge(self, client):
        r = client.get("/challenges/987654")
        assert r.status_code == 404
        assert r.json()["details"] == {"resource": "challenge", "id": 987654}
