from conftest import API


class TestStartWork:
    def test_start(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        r = market.job_status(pro, job_id, "start")
        assert r.status_code == 200
        assert r.json()["data"]["started_at"] is not None
        assert "job_started" in [n["type"] for n in market.notifications(course)]

    def test_start_once(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        assert market.job_status(pro, job_id, "start").status_code == 200
        r = market.job_status(pro, job_id, "start")
        assert r.status_code == 409
        r = client.post(f"{API}/jobs/{job_id}/updates", json={
            "update_type": "milestone", "milestone": "started",
        }, headers=pro.headers)
        assert r.status_code == 409

    def test_only_confirmed_professional_starts(self, client, market, course, pro, pro3):
        job_id, _ = market.hire(course, pro)
        assert market.job_status(pro3, job_id, "start").status_code == 403
        assert market.job_status(course, job_id, "start").status_code == 403

    def test_open_job_cannot_start(self, client, market, course, pro):
        job_id = market.post_job(course)
        market.apply(pro, job_id)
        assert market.job_status(pro, job_id, "start").status_code == 409

    def test_started_milestone_on_open_job(self, client, market, course, pro):
        job_id = market.post_job(course)
        market.apply(pro, job_id)
        r = client.post(f"{API}/jobs/{job_id}/updates", json={
            "update_type": "milestone", "milestone": "started",
        }, headers=pro.headers)
        assert r.status_code == 409
        assert r.json()["error"]["code"] == "invalid_state"
        assert market.get_job(course, job_id)["status"] == "open"

    def test_started_milestone_keeps_photos(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        r = client.post(f"{API}/jobs/{job_id}/updates", json={
            "update_type": "photo",
            "milestone": "started",
            "photos": ["https://cdn.example.com/site.jpg"],
        }, headers=pro.headers)
        assert r.status_code == 201
        update = r.json()["data"]
        assert update["update_type"] == "photo"
        assert update["milestone"] == "started"
        assert update["photos"] == ["https://cdn.example.com/site.jpg"]

        r = client.get(f"{API}/jobs/{job_id}/updates", headers=course.headers)
        [stored] = r.json()["data"]
        assert stored["photos"] == ["https://cdn.example.com/site.jpg"]
        assert market.get_job(course, job_id)["started_at"] is not None


class TestPostUpdate:
    def test_progress_update(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        market.job_status(pro, job_id, "start")
        r = client.post(f"{API}/jobs/{job_id}/updates", json={
            "content": "Front nine done, moving to the back.",
            "photos": ["https://cdn.example.com/a.jpg"],
        }, headers=pro.headers)
        assert r.status_code == 201
        update = r.json()["data"]
        assert update["update_type"] == "progress"
        assert update["photos"] == ["https://cdn.example.com/a.jpg"]

        r = client.get(f"{API}/jobs/{job_id}/updates", headers=course.headers)
        assert [u["milestone"] for u in r.json()["data"]] == ["started", None]

    def test_update_on_open_job_is_invalid_state(self, client, market, course, pro3):
        # Even a stranger gets the state error first
        job_id = market.post_job(course)
        r = client.post(f"{API}/jobs/{job_id}/updates", json={"content": "hello"}, headers=pro3.headers)
        assert r.status_code == 409
        assert r.json()["error"]["code"] == "invalid_state"

    def test_empty_update_rejected(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        r = client.post(f"{API}/jobs/{job_id}/updates", json={"content": "   "}, headers=pro.headers)
        assert r.status_code == 400

    def test_milestone_type_needs_milestone(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        r = client.post(f"{API}/jobs/{job_id}/updates", json={
            "update_type": "milestone", "content": "Halfway",
        }, headers=pro.headers)
        assert r.status_code == 400

    def test_photo_cap(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        photos = [f"https://cdn.example.com/{i}.jpg" for i in range(11)]
        r = client.post(f"{API}/jobs/{job_id}/updates", json={
            "update_type": "photo", "photos": photos,
        }, headers=pro.headers)
        assert r.status_code == 400

    def test_course_cannot_post(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        r = client.post(f"{API}/jobs/{job_id}/updates", json={"content": "hello"}, headers=course.headers)
        assert r.status_code == 403

    def test_stranger_cannot_read_updates(self, client, market, course, pro, pro3):
        job_id, _ = market.hire(course, pro)
        assert client.get(f"{API}/jobs/{job_id}/updates", headers=pro3.headers).status_code == 403


class TestCompleteWork:
    def test_complete_requires_start(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        r = market.job_status(pro, job_id, "complete")
        assert r.status_code == 409
        assert market.get_job(course, job_id)["status"] == "in_progress"

        r = client.get(f"{API}/jobs/{job_id}/updates", headers=pro.headers)
        assert r.json()["data"] == []

    def test_professional_completes(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        market.job_status(pro, job_id, "start")
        r = market.job_status(pro, job_id, "complete", completion_notes="Greens rolled.")
        assert r.status_code == 200
        job = r.json()["data"]
        assert job["status"] == "completed"
        assert job["completion_notes"] == "Greens rolled."
        assert job["completed_at"] is not None

        r = client.get(f"{API}/jobs/{job_id}/updates", headers=course.headers)
        assert [u["milestone"] for u in r.json()["data"]] == ["started", "completed"]
        assert "job_completed" in [n["type"] for n in market.notifications(course)]

    def test_course_completes(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        market.job_status(pro, job_id, "start")
        r = market.job_status(course, job_id, "complete")
        assert r.status_code == 200
        assert r.json()["data"]["status"] == "completed"
        assert "job_completed" in [n["type"] for n in market.notifications(pro)]

    def test_completed_milestone_completes_job(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        market.job_status(pro, job_id, "start")
        r = client.post(f"{API}/jobs/{job_id}/updates", json={
            "update_type": "milestone", "milestone": "completed", "content": "All done.",
        }, headers=pro.headers)
        assert r.status_code == 201
        assert market.get_job(course, job_id)["status"] == "completed"

    def test_no_updates_after_completion(self, client, market, course, pro):
        job_id, _ = market.hire(course, pro)
        market.job_status(pro, job_id, "start")
        market.job_status(pro, job_id, "complete")
        r = client.post(f"{API}/jobs/{job_id}/updates", json={"content": "One more thing"}, headers=pro.headers)
        assert r.status_code == 409
        assert market.job_status(pro, job_id, "complete").status_code == 409

    def test_stranger_cannot_complete(self, client, market, course, pro, pro3):
        job_id, _ = market.hire(course, pro)
        market.job_status(pro, job_id, "start")
        assert market.job_status(pro3, job_id, "complete").status_code == 403
