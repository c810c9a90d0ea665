from unittest.mock import MagicMock


def test_checkout_empty_cart(client, catalog, fake_gateway):
    r = client.post("/api/v1/checkout/orders", json={})
    assert r.status_code == 400
    assert r.json()["error"] == "empty_cart"
    assert catalog.orders == {}

def test_checkout_from_cart_then_verify(client, catalog, fake_gateway):
    fake_gateway.accept("pay_1", "sig_1")
    client.post("/api/v1/cart/items", json={"product_id": "A", "quantity": 2})
    client.post("/api/v1/cart/items", json={"product_id": "B", "quantity": 1})

    r = client.post("/api/v1/checkout/orders", json={"customer": {"name": "Asha", "email": "asha@example.com"}})
    assert r.status_code == 200
    created = r.json()
    assert created["amount"] == 250.0
    assert created["amount_minor"] == 25000
    assert created["key_id"] == "rzp_test_fake"
    assert client.get("/api/v1/cart").json()["count"] == 0

    status = client.get(f"/api/v1/checkout/orders/{created['order_id']}").json()
    assert status["status"] == "created"

    r = client.post("/api/v1/checkout/verify", json={"order_id": created["order_id"], "payment_id": "pay_1", "signature": "sig_1"})
    assert r.status_code == 200
    assert r.json()["order"]["status"] == "paid"
    assert "gateway_signature" not in r.json()["order"]

def test_buy_now_does_not_touch_cart(client, catalog, fake_gateway):
    client.post("/api/v1/cart/items", json={"product_id": "B", "quantity": 1})
    r = client.post("/api/v1/checkout/orders", json={"product_id": "A", "quantity": 1})
    assert r.json()["amount"] == 100.0
    assert client.get("/api/v1/cart").json()["count"] == 1

def test_checkout_without_body_uses_cart(client, catalog, fake_gateway):
    client.post("/api/v1/cart/items", json={"product_id": "B", "quantity": 2})
    r = client.post("/api/v1/checkout/orders")
    assert r.status_code == 200
    assert r.json()["amount"] == 100.0

def test_checkout_invalid_customer_email(client, catalog, fake_gateway):
    r = client.post("/api/v1/checkout/orders", json={"product_id": "A", "customer": {"email": "nope"}})
    assert r.status_code == 422

def test_gateway_down_is_502(client, catalog, fake_gateway):
    fake_gateway.fail = True
    client.post("/api/v1/cart/items", json={"product_id": "A", "quantity": 1})
    r = client.post("/api/v1/checkout/orders", json={})
    assert r.status_code == 502
    assert r.json()["error"] == "gateway_unavailable"
    assert client.get("/api/v1/cart").json()["count"] == 1

def test_verify_errors(client, catalog, fake_gateway):
    r = client.post("/api/v1/checkout/verify", json={"order_id": "missing", "payment_id": "pay_1", "signature": "s"})
    assert r.status_code == 404
    assert r.json()["error"] == "order_not_found"

    order = client.post("/api/v1/checkout/orders", json={"product_id": "A"}).json()
    r = client.post("/api/v1/checkout/verify", json={"order_id": order["order_id"], "payment_id": "pay_1", "signature": "forged"})
    assert r.status_code == 400
    assert r.json()["error"] == "payment_verification_failed"

    r = client.post("/api/v1/checkout/verify", json={"order_id": order["order_id"], "payment_id": "pay_1", "signature": "forged"})
    assert r.status_code == 400
    assert client.get(f"/api/v1/checkout/orders/{order['order_id']}").json()["status"] == "created"

def test_verify_pending_payment_is_409(client, catalog, fake_gateway):
    fake_gateway.accept("pay_1", "sig_1")
    fake_gateway.pending.add("pay_1")
    order = client.post("/api/v1/checkout/orders", json={"product_id": "A"}).json()
    r = client.post("/api/v1/checkout/verify", json={"order_id": order["order_id"], "payment_id": "pay_1", "signature": "sig_1"})
    assert r.status_code == 409
    assert r.json()["error"] == "payment_pending"

def test_unknown_order_status_is_404(client, catalog):
    assert client.get("/api/v1/checkout/orders/missing").status_code == 404

def test_webhook_marks_order_paid(client, catalog, fake_gateway, monkeypatch):
    order = client.post("/api/v1/checkout/orders", json={"product_id": "A"}).json()

    async def _fake_parse_event(request):
        return {"type": "payment_intent.succeeded", "data": {"object": {"id": order["gateway_order_id"], "status": "succeeded"}}}
    monkeypatch.setattr("clinic.payments.stripe_client.parse_event", _fake_parse_event)

    r = client.post("/api/v1/checkout/webhook", content=b"{}")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "order_id": order["order_id"]}
    assert catalog.orders[order["order_id"]]["status"] == "paid"

def test_webhook_bad_signature_is_400(client, monkeypatch):
    monkeypatch.setattr("clinic.config.STRIPE_WEBHOOK_SECRET", "whsec_123")
    monkeypatch.setattr("stripe.Webhook.construct_event", MagicMock(side_effect=ValueError("bad")))
    r = client.post("/api/v1/checkout/webhook", content=b"{}", headers={"stripe-signature": "t=1,v1=bad"})
    assert r.status_code == 400
