from conftest import API
from app.services import geo_service


class TestNearbySearch:
    def test_results_follow_distance_order(self, client, market, course, pro, monkeypatch):
        near = market.post_job(course, title="Near: bunker raking")
        far = market.post_job(course, title="Far: tree trimming")
        closed = market.post_job(course, title="Closed: cart path")
        market.job_status(course, closed, "cancel")

        calls = []

        def fake_within(db, lat, lng, radius):
            calls.append((lat, lng, radius))
            return [near, closed, far]

        monkeypatch.setattr(geo_service, "jobs_within_distance", fake_within)
        r = client.get(f"{API}/jobs/search", params={"lat": 36.5, "lng": -121.9, "radius": 10}, headers=pro.headers)
        assert r.status_code == 200
        assert [j["id"] for j in r.json()["data"]] == [near, far]
        assert calls == [(36.5, -121.9, 10)]

    def test_default_radius(self, client, pro, monkeypatch):
        seen = {}

        def fake_within(db, lat, lng, radius):
            seen["radius"] = radius
            return []

        monkeypatch.setattr(geo_service, "jobs_within_distance", fake_within)
        r = client.get(f"{API}/jobs/search", params={"lat": 36.5, "lng": -121.9}, headers=pro.headers)
        assert r.status_code == 200
        assert r.json()["data"] == []
        assert seen["radius"] == 25

    def test_radius_bounds(self, client, pro):
        r = client.get(f"{API}/jobs/search", params={"lat": 36.5, "lng": -121.9, "radius": 500}, headers=pro.headers)
        assert r.status_code == 400

    def test_store_without_distance_function(self, client, pro):
        # Plain SQLite has no jobs_within_distance table function
        r = client.get(f"{API}/jobs/search", params={"lat": 36.5, "lng": -121.9}, headers=pro.headers)
        assert r.status_code == 503
        assert r.json()["error"]["code"] == "dependency_failure"
