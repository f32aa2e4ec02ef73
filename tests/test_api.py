# tests/test_api.py
import inspect
from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport

from healthconnect import security
from healthconnect.main import app
from healthconnect.seed import seed_sample_data

from conftest import ADMIN_EMAIL, PASSWORD

API = "/api/v1"

BOOKING = {
    "doctor_name": "Dr. Smith",
    "consultation_type": "video_call",
    "preferred_date": "2026-11-02",
    "preferred_time": "14:30:00",
    "symptoms": "Persistent headache",
}


def signup(client, email, full_name):
    response = client.post(f"{API}/auth/signup", json={"email": email, "password": PASSWORD, "full_name": full_name})
    assert response.status_code == 201, response.text
    return response.json()


def auth(token_response):
    return {"Authorization": f"Bearer {token_response['access_token']}"}


@pytest.fixture
def owner_headers(client):
    return auth(signup(client, "owner@mail.com", "Olivia Owner"))


@pytest.fixture
def stranger_headers(client):
    return auth(signup(client, "stranger@mail.com", "Sam Stranger"))


@pytest.fixture
def admin_headers(client):
    return auth(signup(client, ADMIN_EMAIL, "Ada Admin"))


@pytest.fixture
def bank_account_id(client, admin_headers):
    response = client.post(f"{API}/bank-accounts", headers=admin_headers, json={
        "bank_name": "Wells Fargo",
        "account_name": "HealthConnect Medical Services",
        "account_number": "1234567890",
        "routing_number": "121000248",
    })
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.fixture
async def async_client(client):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    response = await async_client.get(f"{API}/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_signup_assigns_roles(client):
    assert signup(client, "owner@mail.com", "Olivia Owner")["user"]["profile"]["role"] == "user"
    assert signup(client, ADMIN_EMAIL, "Ada Admin")["user"]["profile"]["role"] == "admin"


def test_duplicate_signup_and_weak_password(client):
    signup(client, "owner@mail.com", "Olivia Owner")
    duplicate = client.post(f"{API}/auth/signup", json={"email": "owner@mail.com", "password": PASSWORD})
    assert duplicate.status_code == 400

    weak = client.post(f"{API}/auth/signup", json={"email": "new@mail.com", "password": "lettersonly"})
    assert weak.status_code == 422


def test_login_and_profile(client):
    signup(client, "owner@mail.com", "Olivia Owner")

    bad = client.post(f"{API}/auth/token", data={"username": "owner@mail.com", "password": "wrong-pass1"})
    assert bad.status_code == 401

    token = client.post(f"{API}/auth/token", data={"username": "owner@mail.com", "password": PASSWORD})
    assert token.status_code == 200
    headers = auth(token.json())

    assert client.get(f"{API}/auth/me", headers=headers).json()["full_name"] == "Olivia Owner"
    renamed = client.patch(f"{API}/auth/me", headers=headers, json={"full_name": "Olivia O."})
    assert renamed.json()["full_name"] == "Olivia O."
    assert renamed.json()["role"] == "user"


def test_requests_without_token_are_rejected(client):
    assert client.get(f"{API}/consultations").status_code == 401
    assert client.get(f"{API}/dashboard").status_code == 401


def test_booking_payment_and_decline_flow(client, owner_headers, stranger_headers, admin_headers, bank_account_id):
    booked = client.post(f"{API}/consultations", headers=owner_headers, json=BOOKING)
    assert booked.status_code == 201, booked.text
    consultation = booked.json()
    assert consultation["status"] == "pending"
    assert consultation["payment_status"] == "unpaid"
    assert Decimal(str(consultation["amount"])) == Decimal("50")
    cid = consultation["id"]

    assert client.get(f"{API}/consultations/unpaid/latest", headers=owner_headers).json()["id"] == cid
    assert [a["id"] for a in client.get(f"{API}/bank-accounts", headers=owner_headers).json()] == [bank_account_id]

    paid = client.post(f"{API}/consultations/{cid}/confirm-payment", headers=owner_headers,
                       json={"bank_account_id": bank_account_id})
    assert paid.status_code == 200
    assert paid.json()["payment_status"] == "paid"
    assert client.get(f"{API}/consultations/unpaid/latest", headers=owner_headers).status_code == 404

    # Hidden and missing records look the same
    hidden = client.get(f"{API}/consultations/{cid}", headers=stranger_headers)
    missing = client.get(f"{API}/consultations/does-not-exist", headers=stranger_headers)
    assert hidden.status_code == missing.status_code == 404
    assert hidden.json() == missing.json() == {"detail": "Consultation not found"}
    assert client.post(f"{API}/consultations/{cid}/cancel", headers=stranger_headers).status_code == 404
    assert client.get(f"{API}/consultations", headers=stranger_headers).json() == []

    assert client.patch(f"{API}/consultations/{cid}/status", headers=owner_headers,
                        json={"status": "approved"}).status_code == 403

    declined = client.patch(f"{API}/consultations/{cid}/status", headers=admin_headers,
                            json={"status": "declined", "admin_notes": "schedule conflict"})
    assert declined.status_code == 200
    assert declined.json()["status"] == "declined"

    assert client.get(f"{API}/notifications/unread-count", headers=owner_headers).json() == {"unread": 1}
    [notification] = client.get(f"{API}/notifications", headers=owner_headers).json()
    assert notification["title"] == "Consultation Declined"
    assert notification["message"].endswith("Reason: schedule conflict")
    assert client.get(f"{API}/notifications", headers=admin_headers).json() == []

    assert client.post(f"{API}/notifications/{notification['id']}/read", headers=stranger_headers).status_code == 404
    assert client.post(f"{API}/notifications/{notification['id']}/read", headers=owner_headers).status_code == 204
    assert client.post(f"{API}/notifications/read-all", headers=owner_headers).json() == {"updated": 0}

    refunded = client.post(f"{API}/consultations/{cid}/refund", headers=admin_headers)
    assert refunded.json()["payment_status"] == "refunded"


def test_invalid_status_value_is_rejected(client, owner_headers, admin_headers):
    cid = client.post(f"{API}/consultations", headers=owner_headers, json=BOOKING).json()["id"]
    response = client.patch(f"{API}/consultations/{cid}/status", headers=admin_headers, json={"status": "archived"})
    assert response.status_code == 422


def test_stale_expected_status_is_not_applied(client, owner_headers, admin_headers):
    cid = client.post(f"{API}/consultations", headers=owner_headers, json=BOOKING).json()["id"]
    assert client.post(f"{API}/consultations/{cid}/cancel", headers=owner_headers).status_code == 200

    approve = client.patch(f"{API}/consultations/{cid}/status", headers=admin_headers,
                           json={"status": "approved", "expected_status": "pending"})
    assert approve.status_code == 404
    assert client.get(f"{API}/consultations/{cid}", headers=owner_headers).json()["status"] == "cancelled"


def test_dashboards(client, owner_headers, admin_headers, bank_account_id):
    first = client.post(f"{API}/consultations", headers=owner_headers, json=BOOKING).json()["id"]
    client.post(f"{API}/consultations", headers=owner_headers, json=dict(BOOKING, consultation_type="chat"))
    client.post(f"{API}/consultations/{first}/confirm-payment", headers=owner_headers,
                json={"bank_account_id": bank_account_id})
    client.patch(f"{API}/consultations/{first}/status", headers=admin_headers, json={"status": "completed"})

    mine = client.get(f"{API}/dashboard", headers=owner_headers).json()
    assert mine["total_consultations"] == 2
    assert mine["active_consultations"] == 1
    assert mine["profile"]["full_name"] == "Olivia Owner"
    assert mine["latest_unpaid"]["consultation_type"] == "chat"

    assert client.get(f"{API}/admin/dashboard", headers=owner_headers).status_code == 403
    overview = client.get(f"{API}/admin/dashboard", headers=admin_headers).json()
    assert overview["total_consultations"] == 2
    assert overview["pending_consultations"] == 1
    assert overview["approved_consultations"] == 0
    assert Decimal(str(overview["total_revenue"])) == Decimal("50")
    assert {c["owner_name"] for c in overview["consultations"]} == {"Olivia Owner"}


def test_bank_account_management_is_admin_only(client, owner_headers, admin_headers, bank_account_id):
    assert client.post(f"{API}/bank-accounts", headers=owner_headers, json={
        "bank_name": "Citibank", "account_name": "Someone", "account_number": "1",
    }).status_code == 403

    deactivated = client.patch(f"{API}/bank-accounts/{bank_account_id}", headers=admin_headers, json={"is_active": False})
    assert deactivated.json()["is_active"] is False
    assert client.get(f"{API}/bank-accounts?include_inactive=true", headers=owner_headers).json() == []
    assert len(client.get(f"{API}/bank-accounts?include_inactive=true", headers=admin_headers).json()) == 1


def test_hospital_directory_is_public(client, db):
    seed_sample_data(db)

    found = client.get(f"{API}/hospitals", params={"search": "denver"}).json()
    assert [h["name"] for h in found] == ["Mountain View Medical Center"]

    nearby = client.get(f"{API}/hospitals/nearby", params={"lat": 41.88, "lng": -87.63, "limit": 2}).json()
    assert len(nearby) == 2
    assert nearby[0]["city"] == "Chicago"
    assert nearby[0]["distance"] < 1

    assert client.get(f"{API}/hospitals/nearby", params={"lat": 120, "lng": 0}).status_code == 422


def test_owner_can_cancel_an_approved_consultation(client, owner_headers, admin_headers):
    cid = client.post(f"{API}/consultations", headers=owner_headers, json=BOOKING).json()["id"]
    client.patch(f"{API}/consultations/{cid}/status", headers=admin_headers, json={"status": "approved"})

    cancelled = client.post(f"{API}/consultations/{cid}/cancel", headers=owner_headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert client.get(f"{API}/notifications/unread-count", headers=owner_headers).json() == {"unread": 1}


def test_auth_dependencies_run_in_the_threadpool():
    # Sync dependencies keep blocking database calls off the event loop
    assert not inspect.iscoroutinefunction(security.get_current_user)
    assert not inspect.iscoroutinefunction(security.get_current_actor)
