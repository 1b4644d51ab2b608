from healthbook.core.config import settings
from healthbook.core.security import verify_token, UserRole
from healthbook.services.user_service import seed_admin
from healthbook.models.user import User

from tests.conftest import auth, register

class TestRegistration:
    """Test account registration."""

    def test_register_patient(self, user_client):
        """Test registering a patient returns a token and the account."""
        data = register(user_client, "Pat Patient", "Patient@Example.com")

        assert data["token"]
        assert data["user"]["email"] == "patient@example.com"
        assert data["user"]["role"] == "patient"
        assert "passwordHash" not in data["user"]
        assert "password" not in data["user"]

        payload = verify_token(data["token"])
        assert payload.sub == data["user"]["id"]
        assert payload.role == UserRole.PATIENT

    def test_register_duplicate_email(self, user_client, patient):
        """Test registering an email twice is rejected."""
        response = user_client.post("/api/users/register", json={
            "name": "Someone Else",
            "email": "patient@example.com",
            "password": "secret123",
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "User already exists"

    def test_register_short_password(self, user_client):
        """Test validation errors come back as a field list."""
        response = user_client.post("/api/users/register", json={
            "name": "Shorty",
            "email": "short@example.com",
            "password": "123",
        })

        assert response.status_code == 400
        errors = response.json()["errors"]
        assert any(error["field"] == "password" for error in errors)

    def test_register_cannot_choose_admin(self, user_client):
        """Test self-registration cannot create an admin."""
        response = user_client.post("/api/users/register", json={
            "name": "Mallory",
            "email": "mallory@example.com",
            "password": "secret123",
            "role": "admin",
        })

        assert response.status_code == 400

    def test_register_rate_limited(self, user_client, monkeypatch):
        """Test repeated registrations from one client are throttled."""
        monkeypatch.setattr(settings, "RATE_LIMIT_REQUESTS", 2)

        register(user_client, "One", "one@example.com")
        register(user_client, "Two", "two@example.com")
        response = user_client.post("/api/users/register", json={
            "name": "Three",
            "email": "three@example.com",
            "password": "secret123",
        })

        assert response.status_code == 429

class TestLogin:
    """Test authentication."""

    def test_login_success(self, user_client, patient):
        response = user_client.post("/api/users/login", json={
            "email": "patient@example.com",
            "password": "secret123",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == patient["user"]["id"]
        assert verify_token(data["token"]).email == "patient@example.com"

    def test_login_wrong_password(self, user_client, patient):
        """Test a wrong password and an unknown email fail the same way."""
        wrong_password = user_client.post("/api/users/login", json={
            "email": "patient@example.com",
            "password": "wrongpass",
        })
        unknown_email = user_client.post("/api/users/login", json={
            "email": "nobody@example.com",
            "password": "secret123",
        })

        assert wrong_password.status_code == 401
        assert unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()

class TestProfile:
    """Test the authenticated account endpoints."""

    def test_me_requires_token(self, user_client):
        response = user_client.get("/api/users/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "No token, authorization denied"

    def test_me_rejects_bad_token(self, user_client):
        response = user_client.get("/api/users/me", headers=auth("not-a-jwt"))

        assert response.status_code == 401

    def test_me_and_profile(self, user_client, patient):
        me = user_client.get("/api/users/me", headers=auth(patient["token"]))
        profile = user_client.get("/api/users/profile", headers=auth(patient["token"]))

        assert me.status_code == 200
        assert me.json()["name"] == "Pat Patient"
        assert profile.json()["id"] == me.json()["id"]

    def test_update_own_profile(self, user_client, patient):
        user_id = patient["user"]["id"]
        response = user_client.put(
            f"/api/users/{user_id}",
            json={"address": "1 Main St", "dateOfBirth": "1990-04-02"},
            headers=auth(patient["token"]),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["address"] == "1 Main St"
        assert data["dateOfBirth"] == "1990-04-02"
        assert data["role"] == "patient"

    def test_update_other_profile_forbidden(self, user_client, patient, other_patient):
        response = user_client.put(
            f"/api/users/{other_patient['user']['id']}",
            json={"name": "Hijacked"},
            headers=auth(patient["token"]),
        )

        assert response.status_code == 403

    def test_update_email_in_use(self, user_client, patient, other_patient):
        response = user_client.put(
            f"/api/users/{patient['user']['id']}",
            json={"email": "other@example.com"},
            headers=auth(patient["token"]),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Email already in use"

    def test_change_password(self, user_client, patient):
        response = user_client.post(
            "/api/users/change-password",
            json={"currentPassword": "secret123", "newPassword": "newsecret456"},
            headers=auth(patient["token"]),
        )
        assert response.status_code == 200

        login = user_client.post("/api/users/login", json={
            "email": "patient@example.com",
            "password": "newsecret456",
        })
        assert login.status_code == 200

    def test_change_password_wrong_current(self, user_client, patient):
        response = user_client.post(
            "/api/users/change-password",
            json={"currentPassword": "nope", "newPassword": "newsecret456"},
            headers=auth(patient["token"]),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Current password is incorrect"

    def test_public_lookup(self, user_client, patient):
        """Test other services can look accounts up without a token."""
        response = user_client.get(f"/api/users/{patient['user']['id']}")

        assert response.status_code == 200
        assert response.json()["email"] == "patient@example.com"

    def test_public_lookup_missing(self, user_client, test_db):
        response = user_client.get("/api/users/doesnotexist")

        assert response.status_code == 404

class TestAdmin:
    """Test admin-only account management."""

    def test_list_users_requires_admin(self, user_client, patient):
        response = user_client.get("/api/users", headers=auth(patient["token"]))

        assert response.status_code == 403

    def test_list_users_by_role(self, user_client, admin, patient, doctor_user):
        response = user_client.get("/api/users?role=doctor", headers=auth(admin["token"]))

        assert response.status_code == 200
        emails = [user["email"] for user in response.json()]
        assert emails == ["doctor@example.com"]

    def test_admin_creates_admin(self, user_client, admin):
        response = user_client.post(
            "/api/users",
            json={
                "name": "Second Admin",
                "email": "admin2@example.com",
                "password": "secret123",
                "role": "admin",
            },
            headers=auth(admin["token"]),
        )

        assert response.status_code == 201
        assert response.json()["role"] == "admin"

    def test_delete_user(self, user_client, admin, patient):
        user_id = patient["user"]["id"]
        response = user_client.delete(f"/api/users/{user_id}", headers=auth(admin["token"]))

        assert response.status_code == 200
        assert response.json()["message"] == "User removed"
        assert user_client.get(f"/api/users/{user_id}").status_code == 404

    def test_seed_admin(self, db_session, monkeypatch):
        """Test the configured admin is created once."""
        monkeypatch.setattr(settings, "ADMIN_EMAIL", "root@example.com")
        monkeypatch.setattr(settings, "ADMIN_PASSWORD", "rootpass")

        seed_admin(db_session)
        seed_admin(db_session)

        admins = db_session.query(User).filter(User.email == "root@example.com").all()
        assert len(admins) == 1
        assert admins[0].role == UserRole.ADMIN

class TestHealth:
    """Test the service metadata endpoints."""

    def test_health(self, user_client):
        response = user_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "UP"
        assert data["service"] == "user-service"
        assert "X-Process-Time" in response.headers

    def test_root(self, doctor_client):
        response = doctor_client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "doctor-service"
