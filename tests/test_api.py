import pytest
from fastapi.testclient import TestClient
from jose import jwt

from auradhom.core.auth import require_admin
from auradhom.core.config import get_settings
from auradhom.deps import get_backup_service, get_notification_service, get_order_service
from auradhom.main import app

API = get_settings().API_V1_STR


@pytest.fixture
def client(order_service, notification_service, backup_service):
    app.dependency_overrides[get_order_service] = lambda: order_service
    app.dependency_overrides[get_notification_service] = lambda: notification_service
    app.dependency_overrides[get_backup_service] = lambda: backup_service
    app.dependency_overrides[require_admin] = lambda: "alice@auradhom.com"
    yield TestClient(app)
    app.dependency_overrides.clear()


def checkout_payload(**overrides):
    payload = {
        "customer": {
            "first_name": "Grace",
            "last_name": "Mabiala",
            "address": "12 rue Mbaka",
            "department": "brazzaville",
            "city": "brazzaville-city",
            "district": "Poto-Poto",
            "phone": "+242 06 123 4567",
        },
        "items": [
            {"product_id": "tee-aura", "name": "T-shirt Aura", "quantity": 1, "unit_price": 10000},
            {"product_id": "cap-aura", "name": "Casquette Aura", "quantity": 2, "unit_price": 5000},
        ],
    }
    payload.update(overrides)
    return payload


def test_checkout(client):
    res = client.post(f"{API}/orders/checkout", json=checkout_payload())

    assert res.status_code == 201
    body = res.json()
    assert body["sync_pending"] is False
    assert body["warning"] is None
    assert body["order"]["total"] == 20000
    assert body["order"]["status"] == "pending"
    assert body["order"]["order_number"] in body["order"]["outbound_message"]
    assert body["whatsapp_url"].startswith("https://wa.me/242050728339?text=")


def test_checkout_keeps_supplied_message(client):
    res = client.post(
        f"{API}/orders/checkout",
        json=checkout_payload(outbound_message="Bonjour, ma commande"),
    )
    assert res.json()["order"]["outbound_message"] == "Bonjour, ma commande"


def test_checkout_invalid_input_is_400(client):
    assert client.post(f"{API}/orders/checkout", json=checkout_payload(items=[])).status_code == 400

    payload = checkout_payload()
    payload["customer"]["phone"] = ""
    assert client.post(f"{API}/orders/checkout", json=payload).status_code == 400


def test_checkout_retry_returns_existing_order(client):
    first = client.post(f"{API}/orders/checkout", json=checkout_payload(order_number="ADH-9-9"))
    again = client.post(f"{API}/orders/checkout", json=checkout_payload(order_number="ADH-9-9"))

    assert again.status_code == 409
    assert again.json()["order"]["id"] == first.json()["order"]["id"]


def test_checkout_with_store_down_is_placed_but_pending_sync(client, store):
    store.failing = True

    res = client.post(f"{API}/orders/checkout", json=checkout_payload())

    assert res.status_code == 201
    assert res.json()["sync_pending"] is True
    assert res.json()["order"]["sync_status"] == "pending_sync"
    assert "unreachable" in res.json()["warning"]


def test_admin_validate_and_reject(client):
    a = client.post(f"{API}/orders/checkout", json=checkout_payload()).json()["order"]
    b = client.post(f"{API}/orders/checkout", json=checkout_payload()).json()["order"]

    res = client.post(f"{API}/orders/{a['id']}/validate")
    assert res.status_code == 200
    assert res.json()["validated_by"] == "alice@auradhom.com"

    again = client.post(f"{API}/orders/{a['id']}/reject", json={"reason": "trop tard"})
    assert again.status_code == 409
    assert again.json()["current_status"] == "validated"

    assert client.post(f"{API}/orders/{b['id']}/reject", json={"reason": ""}).status_code == 400
    res = client.post(f"{API}/orders/{b['id']}/reject", json={"reason": "Rupture de stock"})
    assert res.json()["status"] == "rejected"

    counts = client.get(f"{API}/orders/counts").json()
    assert counts == {"pending": 0, "validated": 1, "rejected": 1}


def test_validate_with_store_down_is_503(client, store):
    order = client.post(f"{API}/orders/checkout", json=checkout_payload()).json()["order"]
    store.failing = True

    res = client.post(f"{API}/orders/{order['id']}/validate")

    assert res.status_code == 503
    store.failing = False
    assert client.get(f"{API}/orders/{order['id']}").json()["status"] == "pending"


def test_list_and_get_orders(client):
    order = client.post(f"{API}/orders/checkout", json=checkout_payload()).json()["order"]

    listed = client.get(f"{API}/orders", params={"status": "pending", "customer_name": "grace"})
    assert [o["id"] for o in listed.json()] == [order["id"]]
    assert client.get(f"{API}/orders", params={"status": "validated"}).json() == []

    assert client.get(f"{API}/orders/{order['id']}").json()["id"] == order["id"]
    assert client.get(f"{API}/orders/unknown").status_code == 404

    link = client.get(f"{API}/orders/{order['id']}/whatsapp-link").json()["url"]
    assert link.startswith("https://wa.me/242061234567?text=")


def test_export_download(client):
    client.post(f"{API}/orders/checkout", json=checkout_payload())

    res = client.get(f"{API}/orders/export")

    assert res.status_code == 200
    assert "attachment" in res.headers["content-disposition"]
    assert "commandes-auradhom-" in res.headers["content-disposition"]
    assert res.json()["totalOrders"] == 1


def test_resync_endpoint(client, store):
    store.failing = True
    client.post(f"{API}/orders/checkout", json=checkout_payload())
    store.failing = False

    assert client.post(f"{API}/orders/resync").json() == {"synced": 1, "failed": 0}


def test_notifications_endpoints(client):
    client.post(f"{API}/orders/checkout", json=checkout_payload())
    client.post(f"{API}/orders/checkout", json=checkout_payload())

    assert client.get(f"{API}/notifications/unread-count").json() == {"unread": 2}
    notes = client.get(f"{API}/notifications").json()
    assert all(n["kind"] == "new_order" for n in notes)

    read = client.post(f"{API}/notifications/{notes[0]['id']}/read").json()
    assert read["read"] is True
    assert client.get(f"{API}/notifications/unread-count").json() == {"unread": 1}

    assert client.post(f"{API}/notifications/read-all").json() == {"unread": 0}

    assert client.delete(f"{API}/notifications/{notes[1]['id']}").status_code == 204
    assert client.delete(f"{API}/notifications/{notes[1]['id']}").status_code == 404
    assert client.post(f"{API}/notifications/nope/read").status_code == 404


# ---- admin auth ----


@pytest.fixture
def auth_client(order_service, monkeypatch):
    monkeypatch.setattr(get_settings(), "SUPABASE_JWT_SECRET", "test-secret")
    app.dependency_overrides[get_order_service] = lambda: order_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def token(role):
    claims = {"sub": "user-1", "email": "bob@auradhom.com", "app_metadata": {"role": role}}
    return jwt.encode(claims, "test-secret", algorithm="HS256")


def test_admin_token_identity_is_recorded(auth_client, order_service, customer, items):
    order = order_service.create_order(customer, items, "msg").order

    res = auth_client.post(
        f"{API}/orders/{order.id}/validate",
        headers={"Authorization": f"Bearer {token('admin')}"},
    )

    assert res.status_code == 200
    assert res.json()["validated_by"] == "bob@auradhom.com"


def test_admin_endpoints_reject_customers_and_guests(auth_client):
    assert auth_client.get(f"{API}/orders").status_code == 401
    res = auth_client.get(f"{API}/orders", headers={"Authorization": f"Bearer {token('user')}"})
    assert res.status_code == 403
    res = auth_client.get(f"{API}/orders", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
