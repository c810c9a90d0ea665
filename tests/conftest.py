import os

# Avant tout import de clinic.config
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
os.environ.setdefault("SESSION_SECRET", "test-session-secret-0123456789-abcdefghij")
os.environ.setdefault("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")

import copy
from decimal import Decimal
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from clinic.app_setup.factory import create_app
from clinic.errors import GatewayError, PaymentPending
from clinic.orders import repository as orders_repo
from clinic.payments import gateway as gateway_module
from clinic.payments.gateway import PaymentGateway
from clinic.products import repository as products_repo

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)


class FakeShopDB:
    """Tables 'products' et 'orders' en mémoire, mêmes signatures que les repositories."""

    def __init__(self):
        self.products: Dict[str, dict] = {}
        self.orders: Dict[str, dict] = {}

    def add_product(self, product_id: str, name: str, price: Any, active: bool = True, image: str = "") -> dict:
        self.products[product_id] = {
            "id": product_id, "name": name, "description": "", "price": str(price),
            "image": image, "active": active, "created_at": f"2025-01-01T00:00:{len(self.products):02d}",
        }
        return self.products[product_id]

    # products
    def list_products(self, active_only: bool = True) -> List[dict]:
        rows = [copy.deepcopy(p) for p in self.products.values() if p.get("active") or not active_only]
        return sorted(rows, key=lambda p: p["created_at"], reverse=True)

    def get_product(self, product_id: str) -> Optional[dict]:
        p = self.products.get(str(product_id))
        return copy.deepcopy(p) if p else None

    def get_products_map(self, ids) -> Dict[str, dict]:
        return {i: copy.deepcopy(self.products[i]) for i in (str(x) for x in ids) if i in self.products}

    def create_product(self, data: Dict[str, Any]) -> Optional[dict]:
        pid = data.get("id") or f"p{len(self.products) + 1}"
        row = {"id": pid, "active": True, "created_at": "2025-02-01T00:00:00", **data}
        self.products[pid] = row
        return copy.deepcopy(row)

    def update_product(self, product_id: str, data: Dict[str, Any]) -> Optional[dict]:
        if product_id not in self.products:
            return None
        self.products[product_id].update(data)
        return copy.deepcopy(self.products[product_id])

    def delete_product(self, product_id: str) -> bool:
        return self.products.pop(product_id, None) is not None

    def count_products(self) -> int:
        return len(self.products)

    # orders
    def insert_order(self, order: Dict[str, Any]) -> dict:
        row = copy.deepcopy(order)
        row["created_at"] = row["updated_at"] = "2025-03-01T00:00:00"
        self.orders[row["id"]] = row
        return copy.deepcopy(row)

    def get_order(self, order_id: str) -> Optional[dict]:
        o = self.orders.get(order_id)
        return copy.deepcopy(o) if o else None

    def get_order_by_gateway_order_id(self, gateway_order_id: str) -> Optional[dict]:
        for o in self.orders.values():
            if o.get("gateway_order_id") == gateway_order_id:
                return copy.deepcopy(o)
        return None

    def update_order(self, order_id: str, changes: Dict[str, Any], expected_status: Optional[str] = None) -> Optional[dict]:
        o = self.orders.get(order_id)
        if not o or (expected_status and o.get("status") != expected_status):
            return None
        o.update(copy.deepcopy(changes))
        return copy.deepcopy(o)

    def list_orders(self, limit: int = 100, status: Optional[str] = None) -> List[dict]:
        rows = [copy.deepcopy(o) for o in self.orders.values() if not status or o.get("status") == status]
        return rows[:limit]

    def count_orders(self, status: Optional[str] = None) -> int:
        return len(self.list_orders(limit=10**6, status=status))

    def sum_paid_amount(self) -> float:
        return float(sum(Decimal(str(o["amount"])) for o in self.orders.values() if o.get("status") == "paid"))


PRODUCT_REPO_FUNCS = (
    "list_products", "get_product", "get_products_map", "create_product",
    "update_product", "delete_product", "count_products",
)
ORDER_REPO_FUNCS = (
    "insert_order", "get_order", "get_order_by_gateway_order_id", "update_order",
    "list_orders", "count_orders", "sum_paid_amount",
)


class FakeGateway(PaymentGateway):
    """Passerelle en mémoire: intentions numérotées, signatures acceptées déclarées par le test."""
    name = "fake"

    def __init__(self):
        self.fail = False
        self.intents: List[Dict[str, Any]] = []
        self.valid_signatures: Dict[str, str] = {}
        self.pending: set = set()

    def accept(self, payment_id: str, signature: str) -> None:
        self.valid_signatures[payment_id] = signature

    def create_intent(self, amount_minor: int, currency: str, receipt: str) -> Dict[str, Any]:
        if self.fail:
            raise GatewayError("gateway down")
        intent = {"intent_id": f"gw_order_{len(self.intents) + 1}", "amount": amount_minor, "currency": currency, "receipt": receipt}
        self.intents.append(intent)
        return {"intent_id": intent["intent_id"], "status": "created"}

    def verify_signature(self, intent_id: str, payment_id: str, signature: str) -> bool:
        known = any(i["intent_id"] == intent_id for i in self.intents)
        if not (known and self.valid_signatures.get(payment_id) == signature):
            return False
        if payment_id in self.pending:
            raise PaymentPending()
        return True

    def public_params(self) -> Dict[str, Any]:
        return {"key_id": "rzp_test_fake"}


# Aucun accès réseau à Supabase pendant les tests
@pytest.fixture(autouse=True)
def _mock_supabase_clients(monkeypatch):
    monkeypatch.setattr("clinic.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("clinic.infra.supabase_client.get_service_supabase", lambda: MagicMock())

@pytest.fixture(autouse=True)
def _reset_gateway():
    yield
    gateway_module.set_gateway(None)

@pytest.fixture
def fake_db(monkeypatch) -> FakeShopDB:
    db = FakeShopDB()
    for name in PRODUCT_REPO_FUNCS:
        monkeypatch.setattr(products_repo, name, getattr(db, name))
    for name in ORDER_REPO_FUNCS:
        monkeypatch.setattr(orders_repo, name, getattr(db, name))
    return db

@pytest.fixture
def catalog(fake_db) -> FakeShopDB:
    """Catalogue de base: A (100), B (50), C inactif (30)."""
    fake_db.add_product("A", "Consultation", "100.00", image="/img/a.jpg")
    fake_db.add_product("B", "Blood test", "50.00")
    fake_db.add_product("C", "Old package", "30.00", active=False)
    return fake_db

@pytest.fixture
def fake_gateway() -> FakeGateway:
    gw = FakeGateway()
    gateway_module.set_gateway(gw)
    return gw

@pytest.fixture(scope="session")
def app():
    return create_app()

@pytest.fixture()
def client(app, fake_db) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture
def admin_client(client, monkeypatch):
    """Client connecté à l'admin (mot de passe en clair accepté en développement)."""
    monkeypatch.setattr("clinic.config.ADMIN_USER", "admin")
    monkeypatch.setattr("clinic.config.ADMIN_PASS", "dev-admin-pass")
    monkeypatch.setattr("clinic.config.ADMIN_PASS_HASH", "")
    r = client.post("/admin/login", json={"username": "admin", "password": "dev-admin-pass"})
    assert r.status_code == 200
    return client
