import os
import copy
import itertools
from typing import Any, Dict, Generator, List

# Désactive l'init fastapi-limiter (aucune connexion Redis pendant les tests)
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from storefront.app import app as fastapi_app
from storefront.errors import NotFound, UpstreamError
from storefront.payments.gateway import PaymentGateway, compute_signature, encode_metadata, get_payment_gateway
from storefront.utils.security import get_current_user

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


class InMemoryStore:
    """
    Remplace les repositories Supabase par des dicts en mémoire.
    Mêmes signatures et mêmes conventions de retour (None / [] / False),
    copies profondes en lecture comme en écriture (aller-retour base simulé).
    """

    def __init__(self):
        self.products: Dict[str, dict] = {}
        self.users: Dict[str, dict] = {}
        self.orders: Dict[str, dict] = {}
        self.failures: List[dict] = []
        self.failing: set = set()
        self._seq = itertools.count(1)

    # --- helpers de test ---
    def _stamp(self) -> str:
        return f"2024-01-01T00:00:{next(self._seq):06d}"

    def fail_on(self, *operations: str) -> None:
        self.failing.update(operations)

    def add_product(self, **fields) -> dict:
        pid = fields.pop("id", None) or f"prod-{next(self._seq)}"
        product = {
            "id": pid,
            "name": "Produit",
            "description": "",
            "price": 10.0,
            "category": "misc",
            "image_url": "",
            "stock": 10,
            "is_active": True,
            "created_at": self._stamp(),
        }
        product.update(fields)
        self.products[pid] = product
        return copy.deepcopy(product)

    def add_user(self, user_id: str, email: str, role: str = "user", cart=None, wishlist=None) -> dict:
        self.users[user_id] = {
            "id": user_id,
            "email": email,
            "role": role,
            "cart": list(cart or []),
            "wishlist": list(wishlist or []),
            "version": 0,
        }
        return copy.deepcopy(self.users[user_id])

    def cart_of(self, user_id: str) -> List[dict]:
        return copy.deepcopy(self.users[user_id]["cart"])

    def bump_version(self, user_id: str) -> None:
        # simule une écriture concurrente
        self.users[user_id]["version"] += 1

    # --- products.repository ---
    def list_products(self, *, category=None, search=None, price_min=None, price_max=None, include_inactive=False):
        rows = list(self.products.values())
        if not include_inactive:
            rows = [p for p in rows if p.get("is_active", True)]
        if category:
            rows = [p for p in rows if category.lower() in (p.get("category") or "").lower()]
        if search:
            term = search.lower()
            rows = [p for p in rows if term in (p.get("name") or "").lower() or term in (p.get("description") or "").lower()]
        if price_min is not None:
            rows = [p for p in rows if float(p["price"]) >= price_min]
        if price_max is not None:
            rows = [p for p in rows if float(p["price"]) <= price_max]
        rows.sort(key=lambda p: p["created_at"], reverse=True)
        return copy.deepcopy(rows)

    def get_product(self, product_id):
        return copy.deepcopy(self.products.get(str(product_id)))

    def fetch_products_by_ids(self, ids):
        return [copy.deepcopy(self.products[str(i)]) for i in ids if str(i) in self.products]

    def create_product(self, data):
        if "create_product" in self.failing:
            return None
        return self.add_product(**copy.deepcopy(data))

    def update_product(self, product_id, data):
        if "update_product" in self.failing or product_id not in self.products:
            return None
        self.products[product_id].update(copy.deepcopy(data))
        return copy.deepcopy(self.products[product_id])

    def delete_product(self, product_id):
        if "delete_product" in self.failing:
            return False
        self.products.pop(product_id, None)
        return True

    def decrement_stock(self, product_id, quantity, expected_stock):
        product = self.products.get(product_id)
        if not product or product["stock"] != expected_stock or expected_stock < quantity:
            return False
        product["stock"] = expected_stock - quantity
        return True

    # --- users.repository ---
    def get_user_by_id(self, user_id):
        if "get_user_by_id" in self.failing:
            raise UpstreamError("Base de données indisponible")
        return copy.deepcopy(self.users.get(user_id))

    def get_user_by_email(self, email):
        for u in self.users.values():
            if u["email"] == email:
                return copy.deepcopy(u)
        return None

    def upsert_user_profile(self, user_id, email, role=None):
        if user_id in self.users:
            self.users[user_id]["email"] = email
            if role:
                self.users[user_id]["role"] = role
        else:
            self.add_user(user_id, email, role or "user")
        return True

    def save_user_lists(self, user_id, *, expected_version, cart=None, wishlist=None):
        if "save_user_lists" in self.failing:
            raise UpstreamError("Base de données indisponible")
        user = self.users.get(user_id)
        if not user or user["version"] != expected_version:
            return None
        if cart is not None:
            user["cart"] = copy.deepcopy(cart)
        if wishlist is not None:
            user["wishlist"] = copy.deepcopy(wishlist)
        user["version"] = expected_version + 1
        return copy.deepcopy(user)

    # --- orders.repository ---
    def create_order(self, data):
        if "create_order" in self.failing:
            return None
        oid = f"order-{next(self._seq)}"
        order = copy.deepcopy(data)
        order.update({"id": oid, "created_at": self._stamp()})
        self.orders[oid] = order
        return copy.deepcopy(order)

    def list_user_orders(self, user_id):
        rows = [o for o in self.orders.values() if o["user_id"] == user_id]
        rows.sort(key=lambda o: o["created_at"], reverse=True)
        return copy.deepcopy(rows)

    def get_order(self, order_id, user_id=None):
        order = self.orders.get(order_id)
        if not order or (user_id is not None and order["user_id"] != user_id):
            return None
        return copy.deepcopy(order)

    def get_order_by_provider_order_id(self, provider_order_id):
        for o in self.orders.values():
            if o.get("provider_order_id") == provider_order_id:
                return copy.deepcopy(o)
        return None

    def update_order_status(self, order_id, status, expected_status):
        order = self.orders.get(order_id)
        if not order or order["status"] != expected_status:
            return None
        order["status"] = status
        return copy.deepcopy(order)

    # --- payments.repository ---
    def record_payment_failure(self, *, user_id, provider_order_id, error):
        self.failures.append({"user_id": user_id, "provider_order_id": provider_order_id, "error": error})
        return True

    def install(self, monkeypatch) -> "InMemoryStore":
        for name in (
            "list_products", "get_product", "fetch_products_by_ids", "create_product",
            "update_product", "delete_product", "decrement_stock",
        ):
            monkeypatch.setattr(f"storefront.products.repository.{name}", getattr(self, name))
        for name in ("get_user_by_id", "get_user_by_email", "upsert_user_profile", "save_user_lists"):
            monkeypatch.setattr(f"storefront.users.repository.{name}", getattr(self, name))
        for name in ("create_order", "list_user_orders", "get_order", "get_order_by_provider_order_id", "update_order_status"):
            monkeypatch.setattr(f"storefront.orders.repository.{name}", getattr(self, name))
        monkeypatch.setattr("storefront.payments.repository.record_payment_failure", self.record_payment_failure)
        return self


class FakeGateway(PaymentGateway):
    """Passerelle sans réseau: intentions numérotées et relisibles, signature HMAC réelle."""

    def __init__(self, signing_secret: str = "test_signing_secret"):
        self.public_key = "pk_test_123"
        self.signing_secret = signing_secret
        self.currency = "inr"
        self.intents: List[Dict[str, Any]] = []
        self.payments: Dict[str, Dict[str, Any]] = {}
        self.fail_create = False

    def create_intent(self, amount, currency=None, metadata=None):
        minor = self._check_amount(amount)
        if self.fail_create:
            raise UpstreamError("Délai de réponse du fournisseur dépassé")
        intent = {
            "intent_id": f"order_test_{len(self.intents) + 1}",
            "provider_amount": minor,
            "currency": (currency or self.currency).lower(),
            "public_key": self.public_key,
            "metadata": encode_metadata(metadata),
        }
        self.intents.append(intent)
        return intent

    def retrieve_intent(self, intent_id):
        for intent in self.intents:
            if intent["intent_id"] == intent_id:
                return copy.deepcopy(intent)
        raise NotFound("Intention de paiement introuvable")

    def fetch_payment(self, payment_id):
        if payment_id not in self.payments:
            raise NotFound("Paiement introuvable")
        return dict(self.payments[payment_id])

    def sign(self, order_id: str, payment_id: str) -> str:
        return compute_signature(order_id, payment_id, self.signing_secret)


TEST_USER: Dict[str, Any] = {
    "id": "test-user",
    "email": "test@example.com",
    "role": "user",
    "metadata": {},
    "token": "fake-token",
}

@pytest.fixture(scope="session")
def app():
    return fastapi_app

# Évite tout accès réseau Supabase, même si un repository n'est pas patché
@pytest.fixture(autouse=True)
def mock_supabase_clients(monkeypatch):
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: MagicMock())

@pytest.fixture()
def store(monkeypatch) -> InMemoryStore:
    s = InMemoryStore().install(monkeypatch)
    s.add_user(TEST_USER["id"], TEST_USER["email"])
    return s

@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()

@pytest.fixture()
def current_user() -> Dict[str, Any]:
    """Utilisateur renvoyé par get_current_user; modifiable par test (ex: role admin)."""
    return dict(TEST_USER)

@pytest.fixture()
def as_admin(current_user) -> Dict[str, Any]:
    current_user["role"] = "admin"
    return current_user

@pytest.fixture()
def client(app, store, gateway, current_user) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()

@pytest.fixture()
def anonymous_client(app, store, gateway) -> Generator[TestClient, None, None]:
    """Client sans surcharge d'authentification: le vrai contrôle Bearer/cookie s'applique."""
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()