from conftest import API, Account
from app.services.identity_service import IdentityService


class TestProfiles:
    def test_create_and_read(self, client):
        account = Account(id="course-pebble", user_type="course")
        r = client.put(f"{API}/profiles/me", json={
            "user_type": "course", "full_name": "Pebble Beach Golf Links",
        }, headers=account.headers)
        assert r.status_code == 200
        assert r.json()["data"]["email"] == "course-pebble@example.com"

        r = client.get(f"{API}/profiles/me", headers=account.headers)
        assert r.json()["data"]["full_name"] == "Pebble Beach Golf Links"
        assert r.json()["data"]["user_type"] == "course"

    def test_update_name(self, client, course):
        r = client.put(f"{API}/profiles/me", json={"user_type": "course", "full_name": "Renamed"}, headers=course.headers)
        assert r.status_code == 200
        assert r.json()["data"]["full_name"] == "Renamed"

    def test_account_type_is_fixed(self, client, course):
        r = client.put(f"{API}/profiles/me", json={"user_type": "professional"}, headers=course.headers)
        assert r.status_code == 409
        assert r.json()["error"]["code"] == "conflict"

    def test_missing_profile(self, client):
        account = Account(id="newcomer", user_type="professional")
        assert client.get(f"{API}/profiles/me", headers=account.headers).status_code == 404
        # Marketplace endpoints need a profile first
        assert client.get(f"{API}/jobs", headers=account.headers).status_code == 403

    def test_token_signed_with_other_secret(self, client, course):
        forged = IdentityService(secret="someone-else").issue(course.id)
        r = client.get(f"{API}/profiles/me", headers={"Authorization": f"Bearer {forged}"})
        assert r.status_code == 401

    def test_token_without_subject(self, client):
        token = IdentityService().issue("")
        r = client.get(f"{API}/profiles/me", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 401

    def test_invalid_user_type(self, client):
        account = Account(id="someone", user_type="admin")
        r = client.put(f"{API}/profiles/me", json={"user_type": "admin"}, headers=account.headers)
        assert r.status_code == 400


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"
