"""
Tests for content flags, the admin review queue and the admin-only
reminder sweep.
"""
import pytest

from ecopledge.core.errors import FlagAlreadyResolvedError, NotFoundError
from ecopledge.models.comment import Comment
from ecopledge.models.commitment import Commitment
from ecopledge.models.flag import Flag
from ecopledge.models.notification import Notification
from ecopledge.models.user import UserRole
from ecopledge.services import moderation as service

REASON = "This looks like spam to me."


@pytest.fixture()
def admin(make_user):
    return make_user(name="Moderator", role=UserRole.admin)


class TestFlagging:
    def test_flag_commitment(self, client, make_user, make_commitment, auth):
        owner, reporter = make_user(), make_user()
        c = make_commitment(owner)
        r = client.post(
            "/flags",
            json={"content_type": "commitment", "content_id": c.id, "reason": f"  {REASON}  "},
            headers=auth(reporter),
        )
        assert r.status_code == 201
        body = r.json()
        assert (body["content_type"], body["content_id"], body["status"]) == ("commitment", c.id, "open")
        assert body["reason"] == REASON
        assert body["flagged_by_user_id"] == reporter.id
        assert body["resolved_at"] is None

    def test_flag_missing_content(self, client, make_user, auth):
        r = client.post(
            "/flags",
            json={"content_type": "comment", "content_id": 987654, "reason": REASON},
            headers=auth(make_user()),
        )
        assert r.status_code == 404
        assert r.json()["details"] == {"resource": "comment", "id": 987654}

    def test_private_commitment_not_flaggable_by_others(self, client, make_user, make_commitment, auth):
        c = make_commitment(make_user(), visibility="private")
        r = client.post(
            "/flags",
            json={"content_type": "commitment", "content_id": c.id, "reason": REASON},
            headers=auth(make_user()),
        )
        assert r.status_code == 403

    @pytest.mark.parametrize("payload", [
        {"content_type": "profile", "content_id": 1, "reason": REASON},
        {"content_type": "comment", "content_id": 0, "reason": REASON},
        {"content_type": "comment", "content_id": 1, "reason": "   meh    "},
    ])
    def test_invalid_payload(self, client, make_user, auth, payload):
        r = client.post("/flags", json=payload, headers=auth(make_user()))
        assert r.status_code == 422

    def test_requires_auth(self, client):
        r = client.post("/flags", json={"content_type": "comment", "content_id": 1, "reason": REASON})
        assert r.status_code == 401


class TestAdminAccess:
    def test_non_admin_rejected(self, client, make_user, auth):
        r = client.get("/admin/flags", headers=auth(make_user()))
        assert r.status_code == 403
        assert r.json()["code"] == "INSUFFICIENT_ROLE"
        assert r.json()["details"] == {"required_roles": ["admin"]}

    def test_anonymous_rejected(self, client):
        assert client.get("/admin/flags").status_code == 401
        assert client.patch("/admin/flags/1", json={}).status_code == 401
        assert client.post("/admin/reminders").status_code == 401


class TestResolution:
    def _flag(self, db, reporter, content_type, content_id):
        return service.flag_content(db, reporter, content_type, content_id, REASON)

    def test_queue_lists_open_flags_newest_first(self, client, db, make_user, make_commitment, auth, admin):
        reporter = make_user()
        first = self._flag(db, reporter, "commitment", make_commitment(make_user()).id)
        second = self._flag(db, reporter, "commitment", make_commitment(make_user()).id)

        r = client.get("/admin/flags", headers=auth(admin))
        assert r.status_code == 200
        ids = [f["id"] for f in r.json()["items"]]
        assert ids.index(second.id) < ids.index(first.id)

        client.patch(f"/admin/flags/{first.id}", json={"action": "resolve"}, headers=auth(admin))
        open_ids = [f["id"] for f in client.get("/admin/flags", headers=auth(admin)).json()["items"]]
        resolved = client.get("/admin/flags", params={"status": "resolved"}, headers=auth(admin)).json()
        assert first.id not in open_ids
        assert first.id in [f["id"] for f in resolved["items"]]

    def test_resolve_keeps_content(self, client, db, make_user, make_commitment, auth, admin):
        reporter = make_user()
        c = make_commitment(make_user())
        flag = self._flag(db, reporter, "commitment", c.id)

        r = client.patch(f"/admin/flags/{flag.id}", json={}, headers=auth(admin))
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "resolved"
        assert body["resolved_by_user_id"] == admin.id
        assert body["resolved_at"] is not None
        assert client.get(f"/commitments/{c.id}").status_code == 200

        notes = client.get("/notifications", headers=auth(reporter)).json()["items"]
        assert notes[0]["type"] == "admin"
        assert notes[0]["data"] == {"flag_id": flag.id, "removed": False}

    def test_delete_commitment(self, client, db, make_user, make_commitment, auth, admin):
        c = make_commitment(make_user(), milestones=[(7, 0)])
        flag = self._flag(db, make_user(), "commitment", c.id)

        r = client.patch(f"/admin/flags/{flag.id}", json={"action": "delete"}, headers=auth(admin))
        assert r.status_code == 200
        assert client.get(f"/commitments/{c.id}").status_code == 404

    def test_delete_comment_updates_count(self, db, make_user, make_commitment, admin):
        owner, troll, reporter = make_user(), make_user(), make_user()
        c = make_commitment(owner)
        comment = Comment(commitment_id=c.id, user_id=troll.id, text="buy followers here")
        db.add(comment)
        c.comment_count = 1
        db.commit()

        flag = self._flag(db, reporter, "comment", comment.id)
        service.resolve_flag(db, flag.id, admin, "delete")

        db.expire_all()
        assert db.get(Comment, comment.id) is None
        assert db.get(Commitment, c.id).comment_count == 0
        note = (
            db.query(Notification)
            .filter(Notification.user_id == reporter.id, Notification.type == "admin")
            .one()
        )
        assert '"removed": true' in note.payload

    def test_resolving_twice_conflicts(self, client, db, make_user, make_commitment, auth, admin):
        flag = self._flag(db, make_user(), "commitment", make_commitment(make_user()).id)
        service.resolve_flag(db, flag.id, admin)
        with pytest.raises(FlagAlreadyResolvedError):
            service.resolve_flag(db, flag.id, admin)

        r = client.patch(f"/admin/flags/{flag.id}", json={}, headers=auth(admin))
        assert r.status_code == 409
        assert r.json()["code"] == "FLAG_ALREADY_RESOLVED"

    def test_missing_flag(self, client, db, auth, admin):
        with pytest.raises(NotFoundError):
            service.resolve_flag(db, 987654, admin)
        assert client.patch("/admin/flags/987654", json={}, headers=auth(admin)).status_code == 404

    def test_unknown_action(self, client, auth, admin):
        r = client.patch("/admin/flags/1", json={"action": "shred"}, headers=auth(admin))
        assert r.status_code == 422

    def test_flag_row_survives_content_deletion(self, db, make_user, make_commitment, admin):
        c = make_commitment(make_user())
        flag = self._flag(db, make_user(), "commitment", c.id)
        service.resolve_flag(db, flag.id, admin, "delete")
        db.expire_all()
        assert db.get(Flag, flag.id).content_id == c.id


class TestReminderEndpoint:
    def test_admin_runs_sweep(self, client, auth, admin):
        r = client.post("/admin/reminders", params={"idle_days": 30}, headers=auth(admin))
        assert r.status_code == 200
        assert r.json()["idle_days"] == 30
        assert r.json()["sent"] >= 0

    def test_non_admin_rejected(self, client, make_user, auth):
        assert client.post("/admin/reminders", headers=auth(make_user())).status_code == 403
