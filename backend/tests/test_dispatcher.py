from app.models.conversation import Conversation, Message
from app.models.notification import Notification
from app.services import lifecycle
from app.services.dispatcher import dispatcher


class TestDispatcher:
    def test_ensure_conversation_is_idempotent(self, market, course, pro, test_db):
        job_id = market.post_job(course)
        db = test_db()
        try:
            first = dispatcher.ensure_conversation(db, job_id, course.id, pro.id)
            second = dispatcher.ensure_conversation(db, job_id, course.id, pro.id)
            assert first.id == second.id
            assert db.query(Conversation).filter(Conversation.job_id == job_id).count() == 1
        finally:
            db.close()

    def test_open_conversation_twice_posts_one_welcome(self, market, course, pro, test_db):
        job_id = market.post_job(course)
        effect = lifecycle.OpenConversation(job_id, course.id, pro.id, "Welcome aboard")
        assert dispatcher.dispatch([effect]) == []
        assert dispatcher.dispatch([effect]) == []

        db = test_db()
        try:
            messages = db.query(Message).filter(Message.job_id == job_id).all()
            assert [m.content for m in messages] == ["Welcome aboard"]
            assert messages[0].message_type == "system"
        finally:
            db.close()

    def test_failed_effect_becomes_warning(self, market, course, test_db):
        bad = lifecycle.OpenConversation("no-such-job", course.id, "nobody", "hi")
        good = lifecycle.Notify(course.id, "job_started", "Job Started", "Work started")

        warnings = dispatcher.dispatch([bad, good])
        assert len(warnings) == 1
        assert "conversation for job no-such-job" in warnings[0]

        # Later effects still run
        db = test_db()
        try:
            assert db.query(Notification).filter(Notification.user_id == course.id).count() == 1
        finally:
            db.close()

    def test_confirm_survives_notification_outage(self, market, course, pro, client, monkeypatch):
        job_id = market.post_job(course)
        a1 = market.apply(pro, job_id)
        market.act(course, a1, "accept")

        def notifications_down(*args, **kwargs):
            raise RuntimeError("notification store unavailable")

        monkeypatch.setattr(dispatcher, "notify", notifications_down)
        r = market.act(pro, a1, "confirm")
        assert r.status_code == 200
        body = r.json()
        assert body["data"]["status"] == "accepted_by_professional"
        assert len(body["warnings"]) == 2
        assert all("unavailable" in w for w in body["warnings"])

        monkeypatch.undo()
        assert market.get_job(course, job_id)["status"] == "in_progress"
        # The conversation effect was unaffected
        [conversation] = client.get("/api/v1/conversations", headers=pro.headers).json()["data"]
        assert conversation["job_id"] == job_id
