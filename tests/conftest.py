import os

os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_dummy")

import pytest
from decimal import Decimal
from typing import Any, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from marketplace.app import app as fastapi_app
from marketplace.errors import PersistenceError
from marketplace.orders import repository as orders_repository
from marketplace.orders.models import PendingOrderItem, PendingOrderPayload
from marketplace.utils.security import require_user

TEST_USER: Dict[str, Any] = {
    "id": "test-user",
    "email": "test@example.com",
    "role": "customer",
    "metadata": {"full_name": "Test User"},
}

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

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app):
    app.dependency_overrides[require_user] = lambda: dict(TEST_USER)
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

# Aucun test n'atteint Supabase
@pytest.fixture(scope="function", autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("marketplace.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("marketplace.infra.supabase_client.get_service_supabase", lambda: MagicMock())
    monkeypatch.setattr("marketplace.infra.supabase_client.get_user_supabase", lambda token: MagicMock())
    monkeypatch.setattr("marketplace.health.service.health_supabase_info", lambda: {"connect_ok": True})


def cart_row(product_id: str, quantity: int, price: str, vendor_id: Optional[str] = "vendor-1", user_id: str = "test-user") -> Dict[str, Any]:
    """Ligne brute telle que renvoyée par la jointure shopping_cart -> products -> vendors."""
    return {
        "id": f"line-{product_id}",
        "user_id": user_id,
        "product_id": product_id,
        "quantity": quantity,
        "product": {
            "id": product_id,
            "name": f"Produit {product_id}",
            "price": price,
            "vendor_id": vendor_id,
            "vendor": {"id": vendor_id, "business_name": "Boutique"} if vendor_id else None,
        },
    }


class FakeCartRepository:
    """Double en mémoire du module cart.repository (même signatures)."""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self.rows: List[Dict[str, Any]] = list(rows or [])
        self.fail_clear = False
        self.fail_delete = False
        self.calls: List[str] = []

    def fetch_cart_rows(self, user_id, user_token=None):
        return [r for r in self.rows if r["user_id"] == user_id]

    def upsert_cart_line(self, user_id, product_id, quantity, user_token=None):
        self.calls.append("upsert")
        for r in self.rows:
            if r["user_id"] == user_id and r["product_id"] == product_id:
                r["quantity"] = quantity
                return
        self.rows.append(cart_row(product_id, quantity, "0", user_id=user_id))

    def update_cart_quantity(self, user_id, product_id, quantity, user_token=None):
        self.calls.append("update")
        for r in self.rows:
            if r["user_id"] == user_id and r["product_id"] == product_id:
                r["quantity"] = quantity

    def delete_cart_line(self, user_id, product_id, user_token=None):
        self.calls.append("delete")
        if self.fail_delete:
            raise PersistenceError("Failed to remove cart item", details="boom")
        self.rows = [r for r in self.rows if not (r["user_id"] == user_id and r["product_id"] == product_id)]

    def delete_cart_lines(self, user_id, product_ids, user_token=None):
        for product_id in product_ids:
            self.delete_cart_line(user_id, product_id, user_token=user_token)

    def delete_cart_for_user(self, user_id, user_token=None):
        self.calls.append("clear")
        if self.fail_clear:
            raise PersistenceError("Failed to clear cart", details="boom")
        self.rows = [r for r in self.rows if r["user_id"] != user_id]


class FakeOrderStore:
    """Tables orders/order_items en mémoire, branchées sur orders.repository."""

    def __init__(self):
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.items: List[Dict[str, Any]] = []
        self.fail_items = False
        self.fail_orders = False
        self.deleted: List[str] = []

    def insert_order(self, row, user_token=None):
        if self.fail_orders:
            raise PersistenceError("Failed to create order", details="insert refused")
        ref = row.get("payment_reference")
        if ref and any(o.get("payment_reference") == ref for o in self.orders.values()):
            raise orders_repository.DuplicateReferenceError("Order already exists for reference", details=ref)
        order_id = f"order-{len(self.orders) + 1}"
        created = dict(row, id=order_id, created_at="2024-01-01T00:00:00Z")
        self.orders[order_id] = created
        return dict(created)

    def insert_order_items(self, rows, user_token=None):
        if self.fail_items:
            raise PersistenceError("Failed to create order items", details="items refused")
        created = [dict(r, id=f"item-{len(self.items) + i + 1}") for i, r in enumerate(rows)]
        self.items.extend(created)
        return created

    def delete_order(self, order_id):
        self.deleted.append(order_id)
        self.orders.pop(order_id, None)
        return True

    def get_order_by_reference(self, reference):
        for o in self.orders.values():
            if o.get("payment_reference") == reference:
                return dict(o)
        return None

    def get_order(self, order_id):
        o = self.orders.get(order_id)
        return dict(o) if o else None

    def list_customer_orders(self, customer_id, limit=50):
        rows = [dict(o) for o in self.orders.values() if o.get("customer_id") == customer_id]
        return sorted(rows, key=lambda o: o["id"], reverse=True)[:limit]

    def list_order_items(self, order_id):
        return [dict(i) for i in self.items if i["order_id"] == order_id]


@pytest.fixture
def order_store(monkeypatch) -> FakeOrderStore:
    store = FakeOrderStore()
    for name in (
        "insert_order",
        "insert_order_items",
        "delete_order",
        "get_order_by_reference",
        "get_order",
        "list_customer_orders",
        "list_order_items",
    ):
        monkeypatch.setattr(orders_repository, name, getattr(store, name))
    return store


@pytest.fixture
def fake_cart_repo(monkeypatch) -> FakeCartRepository:
    """Panier de test-user: 2 x 1500.00 + 1 x 2000.00 = 5000.00, même vendeur."""
    repo = FakeCartRepository([cart_row("p1", 2, "1500.00"), cart_row("p2", 1, "2000.00")])
    import marketplace.cart.repository as cart_repository
    for name in (
        "fetch_cart_rows",
        "upsert_cart_line",
        "update_cart_quantity",
        "delete_cart_line",
        "delete_cart_lines",
        "delete_cart_for_user",
    ):
        monkeypatch.setattr(cart_repository, name, getattr(repo, name))
    return repo


@pytest.fixture
def checkout_form_data() -> Dict[str, Any]:
    return {
        "firstName": "Ada",
        "lastName": "Okafor",
        "email": "ada@example.com",
        "phone": "08012345678",
        "address": "12 Admiralty Way, Lekki Phase 1",
        "city": "Lagos",
        "state": "Lagos",
        "notes": "",
    }


@pytest.fixture
def pending_payload() -> PendingOrderPayload:
    return PendingOrderPayload(
        customer_id="test-user",
        vendor_id="vendor-1",
        total_amount=Decimal("5000.00"),
        payment_method="paystack",
        delivery_address="12 Admiralty Way, Lekki Phase 1, Lagos, Lagos",
        delivery_phone="08012345678",
        items=[
            PendingOrderItem(product_id="p1", quantity=2, unit_price=Decimal("1500.00")),
            PendingOrderItem(product_id="p2", quantity=1, unit_price=Decimal("2000.00")),
        ],
    )


@pytest.fixture
def make_cart_row():
    return cart_row


@pytest.fixture
def make_cart_repo():
    return FakeCartRepository
