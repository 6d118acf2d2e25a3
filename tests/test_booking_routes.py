"""Tests for the booking endpoints"""

from datetime import date, timedelta

import pytest

from conftest import ADMIN_EMAIL, CUSTOMER_EMAIL, STAFF_EMAIL, VALID_CAPTCHA, login

FUTURE = (date.today() + timedelta(days=5)).isoformat()


def booking_payload(**overrides):
    payload = {
        "services": ["ventanas", "entradas"],
        "date": FUTURE,
        "time": "10:00",
        "name": "María García",
        "email": "maria@example.com",
        "phone": "612345678",
        "address": "Calle Mayor 1, Madrid",
        "notes": "Segundo piso",
    }
    payload.update(overrides)
    return payload


def create_booking(client, **overrides):
    response = client.post("/api/bookings", json=booking_payload(**overrides))
    assert response.status_code == 201, response.json()
    return response


@pytest.fixture
def booking_id(client, storage):
    create_booking(client)
    return storage.bookings.list()[0].id


class TestCreate:
    def test_public_booking(self, client, storage):
        response = create_booking(client)
        assert response.json() == {"success": True, "message": "Reserva creada correctamente"}

        booking = storage.bookings.list()[0]
        assert booking.status.value == "PENDING"
        assert booking.phone == "+34612345678"
        assert booking.services == ["ventanas", "entradas"]
        assert booking.user_id is None

    def test_date_today_is_rejected(self, client, storage):
        response = client.post("/api/bookings", json=booking_payload(date=date.today().isoformat()))
        assert response.status_code == 400
        assert response.json() == {"error": "La fecha debe ser en el futuro"}
        assert storage.bookings.count() == 0

    def test_iso_datetime_is_accepted(self, client, storage):
        create_booking(client, date=f"{FUTURE}T00:00:00.000Z")
        assert storage.bookings.list()[0].date.isoformat() == FUTURE

    def test_markup_is_stripped(self, client, storage):
        create_booking(client, name="<b>María</b>", notes="<script>x</script>ok")
        booking = storage.bookings.list()[0]
        assert booking.name == "María"
        assert booking.notes == "xok"

    def test_duplicate_services_collapse(self, client, storage):
        create_booking(client, services=["pack", "pack", "vehiculos"])
        assert storage.bookings.list()[0].services == ["pack", "vehiculos"]

    @pytest.mark.parametrize("overrides,message", [
        ({"services": []}, "Se requiere al menos un servicio"),
        ({"services": ["piscinas"]}, "Selección de servicio inválida"),
        ({"address": ""}, "Faltan campos obligatorios"),
        ({"email": "no-es-un-email"}, "Formato de email inválido"),
        ({"phone": "+44 7700 900123"}, "Formato de teléfono inválido"),
        ({"date": "mañana"}, "Fecha inválida"),
        ({"name": "x" * 101}, "El nombre es demasiado largo (máximo 100 caracteres)"),
        ({"address": "x" * 501}, "La dirección es demasiado larga (máximo 500 caracteres)"),
        ({"notes": "x" * 1001}, "Las notas son demasiado largas (máximo 1000 caracteres)"),
        ({"name": "<i></i>"}, "Faltan campos obligatorios"),
    ])
    def test_validation(self, client, overrides, message):
        response = client.post("/api/bookings", json=booking_payload(**overrides))
        assert response.status_code == 400
        assert response.json()["error"] == message

    def test_rate_limited(self, client):
        for _ in range(10):
            create_booking(client)
        response = client.post("/api/bookings", json=booking_payload())
        assert response.status_code == 429


class TestStaffAccess:
    def test_list_requires_session(self, client):
        assert client.get("/api/bookings").status_code == 401

    def test_customer_is_forbidden(self, client, customer):
        login(client, CUSTOMER_EMAIL)
        response = client.get("/api/bookings")
        assert response.status_code == 403
        assert response.json() == {"error": "No tienes permisos para realizar esta acción"}

    def test_list_and_filter(self, client, staff, storage, booking_id):
        create_booking(client, date=(date.today() + timedelta(days=20)).isoformat())
        login(client, STAFF_EMAIL)

        response = client.get("/api/bookings")
        assert response.json()["count"] == 2
        assert client.get("/api/bookings", params={"status": "ALL"}).json()["count"] == 2
        assert client.get("/api/bookings", params={"status": "CONFIRMED"}).json()["count"] == 0
        assert client.get("/api/bookings", params={"dateTo": FUTURE}).json()["count"] == 1
        assert client.get("/api/bookings", params={"status": "BOGUS"}).status_code == 400

    def test_get_one(self, client, staff, booking_id):
        login(client, STAFF_EMAIL)
        response = client.get(f"/api/bookings/{booking_id}")
        assert response.status_code == 200
        assert response.json()["booking"]["id"] == booking_id
        assert response.json()["booking"]["services"] == ["ventanas", "entradas"]

    def test_get_invalid_and_missing(self, client, staff):
        login(client, STAFF_EMAIL)
        assert client.get("/api/bookings/not-a-uuid").json() == {"error": "ID de reserva inválido"}
        response = client.get("/api/bookings/00000000-0000-4000-8000-000000000000")
        assert response.status_code == 404
        assert response.json() == {"error": "Reserva no encontrada"}

    def test_update_status_and_notes(self, client, staff, booking_id):
        login(client, STAFF_EMAIL)
        response = client.patch(f"/api/bookings/{booking_id}", json={"status": "CONFIRMED", "notes": None})
        assert response.status_code == 200
        booking = response.json()["booking"]
        assert booking["status"] == "CONFIRMED"
        assert booking["notes"] is None

    def test_update_keeps_notes_when_absent(self, client, staff, booking_id):
        login(client, STAFF_EMAIL)
        response = client.patch(f"/api/bookings/{booking_id}", json={"time": "16:30"})
        assert response.json()["booking"]["notes"] == "Segundo piso"
        assert response.json()["booking"]["time"] == "16:30"

    def test_update_rejects_bad_status(self, client, staff, booking_id):
        login(client, STAFF_EMAIL)
        response = client.patch(f"/api/bookings/{booking_id}", json={"status": "DONE"})
        assert response.status_code == 400

    def test_update_missing(self, client, staff):
        login(client, STAFF_EMAIL)
        response = client.patch(
            "/api/bookings/00000000-0000-4000-8000-000000000000", json={"status": "CONFIRMED"}
        )
        assert response.status_code == 404

    def test_only_admin_deletes(self, client, staff, admin, booking_id, storage):
        login(client, STAFF_EMAIL)
        assert client.delete(f"/api/bookings/{booking_id}").status_code == 403

        login(client, ADMIN_EMAIL)
        response = client.delete(f"/api/bookings/{booking_id}")
        assert response.status_code == 200
        assert storage.bookings.get(booking_id) is None
        assert client.delete(f"/api/bookings/{booking_id}").status_code == 404


class TestSignup:
    def verify_phone(self, client, sms, phone="612345678"):
        client.post("/api/auth/send-code", json={"phone": phone, "captchaToken": VALID_CAPTCHA})
        response = client.post("/api/auth/verify-code", json={"phone": phone, "code": sms.last_code()})
        assert response.status_code == 200

    def test_signup_with_verified_phone(self, client, sms, storage):
        self.verify_phone(client, sms)
        response = client.post("/api/bookings/with-signup", json=booking_payload(password="Limpieza2024"))

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == "maria@example.com"
        assert body["booking"]["services"] == ["ventanas", "entradas"]

        user = storage.users.get_by_email("maria@example.com")
        assert user.role.value == "CUSTOMER"
        assert storage.bookings.get(body["booking"]["id"]).user_id == user.id
        # The verification is consumed
        assert storage.verifications.list_for_phone("+34612345678") == []

        login_response = login(client, "maria@example.com", password="Limpieza2024")
        assert login_response.json()["redirectUrl"].endswith("/dashboard")
        my = client.get("/api/bookings/my").json()["bookings"]
        assert [b["id"] for b in my] == [body["booking"]["id"]]

    def test_registered_email_with_unverified_phone(self, client, customer):
        response = client.post(
            "/api/bookings/with-signup",
            json=booking_payload(email=CUSTOMER_EMAIL, password="Limpieza2024"),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "El teléfono no ha sido verificado"}

    def test_unverified_phone(self, client, storage):
        response = client.post("/api/bookings/with-signup", json=booking_payload(password="Limpieza2024"))
        assert response.status_code == 400
        assert response.json() == {"error": "El teléfono no ha sido verificado"}
        assert storage.users.get_by_email("maria@example.com") is None

    def test_weak_password(self, client, sms):
        self.verify_phone(client, sms)
        response = client.post("/api/bookings/with-signup", json=booking_payload(password="corta"))
        assert response.status_code == 400
        assert "al menos 8 caracteres" in response.json()["error"]

    def test_missing_user_fields(self, client):
        response = client.post("/api/bookings/with-signup", json=booking_payload())
        assert response.status_code == 400
        assert response.json()["error"] == "Todos los campos de usuario son obligatorios"

    def test_existing_email(self, client, sms, customer):
        self.verify_phone(client, sms)
        response = client.post(
            "/api/bookings/with-signup",
            json=booking_payload(email=CUSTOMER_EMAIL, password="Limpieza2024"),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Este email ya está registrado. Por favor, inicia sesión."

    def test_code_cannot_be_reused(self, client, sms):
        self.verify_phone(client, sms)
        assert client.post("/api/bookings/with-signup", json=booking_payload(password="Limpieza2024")).status_code == 200
        response = client.post(
            "/api/bookings/with-signup",
            json=booking_payload(email="otra@example.com", password="Limpieza2024"),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "El teléfono no ha sido verificado"

    def test_my_bookings_requires_session(self, client):
        assert client.get("/api/bookings/my").status_code == 401
