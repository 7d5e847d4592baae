"""Tests for login, registration and account endpoints."""

from conftest import PASSWORD, auth_headers

from barbershop.auth import create_access_token, token_for_admin


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestLogin:
    """POST /auth/login for staff (email) and clients (phone)."""

    def test_staff_login_by_email(self, client, owner):
        response = client.post("/auth/login", data={"username": owner.email.upper(), "password": PASSWORD})
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get("/me", headers=auth_headers(token))
        assert me.status_code == 200
        assert me.json()["user_type"] == "admin"
        assert me.json()["profile"]["role"] == "owner"

    def test_client_login_by_phone(self, client, customer):
        response = client.post("/auth/login", data={"username": "555-0100", "password": PASSWORD})
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

        me = client.get("/me", headers=auth_headers(response.json()["access_token"]))
        assert me.json()["user_type"] == "client"
        assert me.json()["profile"]["client_code"] == customer.client_code

    def test_login_records_last_login(self, client, session, owner):
        client.post("/auth/login", data={"username": owner.email, "password": PASSWORD})
        session.refresh(owner)
        assert owner.last_login is not None

    def test_wrong_password(self, client, owner):
        response = client.post("/auth/login", data={"username": owner.email, "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_unknown_phone(self, client):
        response = client.post("/auth/login", data={"username": "000", "password": PASSWORD})
        assert response.status_code == 401

    def test_deactivated_staff(self, client, make_staff):
        barber = make_staff(role="barber", active=False)
        response = client.post("/auth/login", data={"username": barber.email, "password": PASSWORD})
        assert response.status_code == 401
        assert response.json()["detail"] == "Account is deactivated"

    def test_deactivated_client(self, client, make_client):
        customer = make_client(phone_number="555-0199", account_active=False)
        response = client.post("/auth/login", data={"username": customer.phone_number, "password": PASSWORD})
        assert response.status_code == 401
        assert response.json()["detail"] == "Account is deactivated"


class TestTokens:
    def test_missing_token(self, client):
        assert client.get("/me").status_code == 401

    def test_garbage_token(self, client):
        assert client.get("/me", headers=auth_headers("not-a-jwt")).status_code == 401

    def test_token_for_unknown_user(self, client):
        token = create_access_token({"sub": "999", "user_type": "admin", "role": "owner"})
        assert client.get("/me", headers=auth_headers(token)).status_code == 401

    def test_token_for_deactivated_user(self, client, session, barber):
        token = token_for_admin(barber)
        barber.active = False
        session.add(barber)
        session.commit()
        assert client.get("/me", headers=auth_headers(token)).status_code == 401


class TestRegister:
    """POST /register creates a client account."""

    def test_register(self, client):
        payload = {"first_name": "Bob", "last_name": "Stone", "phone_number": "555-7777", "password": "secret1"}
        response = client.post("/register", json=payload)
        assert response.status_code == 201
        data = response.json()
        assert data["client_code"].startswith("C")
        assert data["loyalty_status"] == "new"
        assert "password_hash" not in data

        login = client.post("/auth/login", data={"username": "555-7777", "password": "secret1"})
        assert login.status_code == 200

    def test_duplicate_phone(self, client, customer):
        payload = {"first_name": "Bob", "last_name": "Stone", "phone_number": "555-0100", "password": "secret1"}
        response = client.post("/register", json=payload)
        assert response.status_code == 409

    def test_validation_error(self, client):
        response = client.post("/register", json={"first_name": "Bob"})
        assert response.status_code == 422
        assert isinstance(response.json()["detail"], list)


class TestPasswordChange:
    def test_change_password(self, client, customer, customer_headers):
        response = client.put(
            "/me/password",
            json={"current_password": PASSWORD, "new_password": "newpass1"},
            headers=customer_headers,
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password updated successfully"

        login = client.post("/auth/login", data={"username": customer.phone_number, "password": "newpass1"})
        assert login.status_code == 200

    def test_wrong_current_password(self, client, owner_headers):
        response = client.put(
            "/me/password",
            json={"current_password": "wrong", "new_password": "newpass1"},
            headers=owner_headers,
        )
        assert response.status_code == 400


class TestAdminProfile:
    def test_update_profile(self, client, owner_headers):
        response = client.put("/admin/profile", json={"name": "Boss", "email": "BOSS@shop.test"}, headers=owner_headers)
        assert response.status_code == 200
        assert response.json()["name"] == "Boss"
        assert response.json()["email"] == "boss@shop.test"

    def test_email_clash(self, client, owner_headers, receptionist):
        response = client.put("/admin/profile", json={"email": receptionist.email}, headers=owner_headers)
        assert response.status_code == 409

    def test_barber_forbidden(self, client, barber_headers):
        response = client.put("/admin/profile", json={"name": "X"}, headers=barber_headers)
        assert response.status_code == 403
