"""
Orchestrateur du checkout: panier -> snapshot de prix -> intention de paiement
-> vérification de signature -> commande -> vidage du panier.

États: Collecting -> IntentCreated -> Verifying -> Fulfilled, ou Failed, ou
Cancelled (paiement abandonné côté client).
Le serveur ne conserve rien entre deux requêtes: le snapshot de prix est figé
dans les metadata de l'intention, relu à la vérification et transformé tel
quel en commande (jamais re-tarifé, jamais un montant client). Le montant
facturé par le fournisseur doit correspondre au total de ce snapshot.

Ordre garanti: le panier n'est vidé qu'après l'enregistrement de la commande.
Une commande enregistrée sans panier vidé (ou un paiement vérifié sans
commande enregistrée) est un IntegrityGap journalisé en CRITICAL pour
réconciliation manuelle; aucune compensation automatique.
"""
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from storefront import config
from storefront.cart import logic as cart_logic
from storefront.cart.service import load_user, user_version
from storefront.checkout import pricing
from storefront.errors import (
    EmptyCart,
    Forbidden,
    IntegrityGap,
    NotFound,
    OutOfStock,
    PaymentVerificationFailed,
    StorefrontError,
    ValidationError,
)
from storefront.orders import repository as orders_repository
from storefront.orders.models import OrderStatus
from storefront.payments.gateway import METADATA_MAX_LINES, PaymentGateway, to_minor_units
from storefront.products import repository as products_repository
from storefront.products import service as products_service
from storefront.users import repository as users_repository

logger = logging.getLogger(__name__)


class CheckoutState(str, Enum):
    COLLECTING = "Collecting"
    INTENT_CREATED = "IntentCreated"
    VERIFYING = "Verifying"
    FULFILLED = "Fulfilled"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


# module storefront.checkout.service
def take_snapshot(user: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Fige le panier avec les prix courants du catalogue.
    - Écarte silencieusement les lignes dont le produit n'existe plus ou est désactivé
    - Chaque ligne: {"product_id", "quantity", "price" (Decimal), "stock"}
    """
    lines = cart_logic.normalize_lines(user.get("cart"))
    products = products_repository.get_products_map(line["product_id"] for line in lines)
    snapshot: List[Dict[str, Any]] = []
    for line in lines:
        product = products.get(line["product_id"])
        if not products_service.is_available(product):
            continue
        snapshot.append({
            "product_id": line["product_id"],
            "quantity": line["quantity"],
            "price": products_service.price_of(product),
            "stock": products_service.stock_of(product),
        })
    return snapshot

def price_snapshot(snapshot: List[Dict[str, Any]]):
    return pricing.compute_totals((line["price"], line["quantity"]) for line in snapshot)

def _check_stock(snapshot: List[Dict[str, Any]]) -> None:
    for line in snapshot:
        if line["quantity"] > line["stock"]:
            raise OutOfStock(f"Stock insuffisant pour le produit {line['product_id']} (disponible: {line['stock']})")

def _cart_metadata(user_id: str, snapshot: List[Dict[str, Any]]) -> Dict[str, str]:
    """
    Fige le snapshot dans l'intention: une clé par ligne "product_id|quantité|prix".
    C'est ce snapshot, et non le panier relu, qui devient la commande.
    """
    if len(snapshot) > METADATA_MAX_LINES:
        raise ValidationError(f"Panier trop volumineux pour le paiement ({METADATA_MAX_LINES} lignes max)")
    metadata = {"user_id": user_id, "lines": str(len(snapshot))}
    for i, line in enumerate(snapshot):
        metadata[f"line_{i}"] = f"{line['product_id']}|{line['quantity']}|{line['price']}"
    return metadata

def snapshot_from_metadata(metadata: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Inverse de _cart_metadata. PaymentVerificationFailed si le format est invalide."""
    try:
        count = int(metadata.get("lines") or 0)
        snapshot = []
        for i in range(count):
            product_id, quantity, price = str(metadata[f"line_{i}"]).rsplit("|", 2)
            snapshot.append({"product_id": product_id, "quantity": int(quantity), "price": pricing.to_decimal(price)})
    except (KeyError, ValueError, ArithmeticError):
        raise PaymentVerificationFailed("Intention de paiement illisible")
    if not snapshot or any(line["quantity"] <= 0 for line in snapshot):
        raise PaymentVerificationFailed("Intention de paiement sans article")
    return snapshot

def collect(user_id: str) -> Dict[str, Any]:
    """Collecting: snapshot + montants. EmptyCart si aucune ligne valide, sans effet de bord."""
    user = load_user(user_id)
    snapshot = take_snapshot(user)
    if not snapshot:
        raise EmptyCart("Aucun article valide dans le panier")
    return {"user": user, "snapshot": snapshot, "totals": price_snapshot(snapshot)}

def begin_checkout(
    user_id: str,
    *,
    gateway: PaymentGateway,
    currency: Optional[str] = None,
    client_amount: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Collecting -> IntentCreated.
    - Recalcule les montants côté serveur (client_amount n'est qu'informatif)
    - En politique "reserve", revérifie le stock de chaque ligne
    - Crée l'intention chez le fournisseur; rien n'est persisté
    """
    collected = collect(user_id)
    snapshot, totals = collected["snapshot"], collected["totals"]
    if config.STOCK_POLICY == config.STOCK_POLICY_RESERVE:
        _check_stock(snapshot)

    if client_amount is not None and pricing.money(client_amount) != totals["total"]:
        logger.warning(
            "checkout.begin client amount ignored user_id=%s client=%s server=%s",
            user_id, client_amount, totals["total"],
        )

    try:
        intent = gateway.create_intent(totals["total"], currency, metadata=_cart_metadata(user_id, snapshot))
    except StorefrontError:
        logger.warning("checkout.begin state=%s user_id=%s", CheckoutState.FAILED.value, user_id)
        raise
    logger.info(
        "checkout.begin state=%s user_id=%s intent_id=%s total=%s",
        CheckoutState.INTENT_CREATED.value, user_id, intent.get("intent_id"), totals["total"],
    )
    return {
        "state": CheckoutState.INTENT_CREATED,
        "intent": intent,
        "totals": totals,
        "items": [{"product_id": l["product_id"], "quantity": l["quantity"], "price": l["price"]} for l in snapshot],
    }

def build_order(
    user_id: str,
    snapshot: List[Dict[str, Any]],
    totals: Dict[str, Any],
    *,
    currency: str,
    shipping_address: Dict[str, Any],
    provider_order_id: str,
    provider_payment_id: str,
    signature: str,
) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "items": [
            {"product_id": l["product_id"], "quantity": l["quantity"], "price": float(l["price"])}
            for l in snapshot
        ],
        "subtotal": float(totals["subtotal"]),
        "shipping": float(totals["shipping"]),
        "tax": float(totals["tax"]),
        "total_amount": float(totals["total"]),
        "currency": currency,
        "status": OrderStatus.PAID.value,
        "shipping_address": dict(shipping_address),
        "provider_order_id": provider_order_id,
        "provider_payment_id": provider_payment_id,
        "signature": signature,
    }

def _with_current_stock(snapshot: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Stock courant du catalogue pour chaque ligne (0 si le produit a disparu)."""
    products = products_repository.get_products_map(line["product_id"] for line in snapshot)
    stocked = []
    for line in snapshot:
        product = products.get(line["product_id"])
        stock = products_service.stock_of(product) if products_service.is_available(product) else 0
        stocked.append(dict(line, stock=stock))
    return stocked

def _reserve_stock(snapshot: List[Dict[str, Any]], order_id: str) -> None:
    for line in snapshot:
        ok = products_repository.decrement_stock(line["product_id"], line["quantity"], expected_stock=line["stock"])
        if not ok:
            logger.critical(
                "checkout.reserve stock not decremented order_id=%s product_id=%s qty=%s",
                order_id, line["product_id"], line["quantity"],
            )

def _clear_cart_after_order(user: Dict[str, Any], order: Dict[str, Any]) -> bool:
    try:
        cleared = users_repository.save_user_lists(user["id"], expected_version=user_version(user), cart=[])
    except StorefrontError:
        cleared = None
    if cleared is None:
        logger.critical(
            "checkout.integrity_gap order saved but cart not cleared user_id=%s order_id=%s provider_order_id=%s",
            user["id"], order.get("id"), order.get("provider_order_id"),
        )
        return False
    return True

def _intent_snapshot(user_id: str, provider_order_id: str, gateway: PaymentGateway) -> Dict[str, Any]:
    """
    Relit l'intention chez le fournisseur et en extrait le snapshot figé.
    - Forbidden si l'intention a été créée pour un autre utilisateur
    - PaymentVerificationFailed si le montant facturé ne correspond pas au snapshot
    """
    try:
        intent = gateway.retrieve_intent(provider_order_id)
    except NotFound:
        raise PaymentVerificationFailed("Intention de paiement inconnue")
    metadata = intent.get("metadata") or {}
    if metadata.get("user_id") != user_id:
        raise Forbidden("Paiement appartenant à un autre utilisateur")

    snapshot = snapshot_from_metadata(metadata)
    totals = price_snapshot(snapshot)
    charged = intent.get("provider_amount")
    if to_minor_units(totals["total"]) != charged:
        logger.critical(
            "checkout.verify amount mismatch user_id=%s provider_order_id=%s charged=%s snapshot_total=%s",
            user_id, provider_order_id, charged, totals["total"],
        )
        raise PaymentVerificationFailed("Montant payé différent du total de la commande")
    return {"snapshot": snapshot, "totals": totals, "currency": intent.get("currency") or gateway.currency}

def complete_checkout(
    user_id: str,
    *,
    provider_order_id: str,
    provider_payment_id: str,
    signature: str,
    shipping_address: Dict[str, Any],
    gateway: PaymentGateway,
) -> Dict[str, Any]:
    """
    Verifying -> Fulfilled | Failed.
    - Signature invalide: PaymentVerificationFailed, panier intact
    - Rejeu d'un provider_order_id déjà converti: renvoie la commande existante
    - La commande reprend le snapshot figé dans l'intention (lignes et prix),
      pas le panier courant
    - Politique "reserve": OutOfStock si le stock a disparu depuis l'intention
    - Commande non enregistrée après paiement vérifié: IntegrityGap
    - Panier non vidé après commande enregistrée: CRITICAL, la commande est renvoyée
    """
    if not gateway.verify_signature(provider_order_id, provider_payment_id, signature):
        logger.warning(
            "checkout.verify state=%s user_id=%s provider_order_id=%s",
            CheckoutState.FAILED.value, user_id, provider_order_id,
        )
        raise PaymentVerificationFailed()

    existing = orders_repository.get_order_by_provider_order_id(provider_order_id)
    if existing:
        if existing.get("user_id") != user_id:
            raise Forbidden("Paiement appartenant à un autre utilisateur")
        logger.info("checkout.verify replay provider_order_id=%s order_id=%s", provider_order_id, existing.get("id"))
        return {"state": CheckoutState.FULFILLED, "order": existing, "cart_cleared": True}

    frozen = _intent_snapshot(user_id, provider_order_id, gateway)
    snapshot, totals = frozen["snapshot"], frozen["totals"]

    reserve = config.STOCK_POLICY == config.STOCK_POLICY_RESERVE
    if reserve:
        snapshot = _with_current_stock(snapshot)
        try:
            _check_stock(snapshot)
        except OutOfStock:
            logger.critical(
                "checkout.integrity_gap payment verified but stock gone user_id=%s provider_order_id=%s",
                user_id, provider_order_id,
            )
            raise

    user = load_user(user_id)
    order_data = build_order(
        user_id,
        snapshot,
        totals,
        currency=frozen["currency"],
        shipping_address=shipping_address,
        provider_order_id=provider_order_id,
        provider_payment_id=provider_payment_id,
        signature=signature,
    )
    order = orders_repository.create_order(order_data)
    if not order:
        logger.critical(
            "checkout.integrity_gap payment verified but order not saved user_id=%s provider_order_id=%s provider_payment_id=%s total=%s",
            user_id, provider_order_id, provider_payment_id, totals["total"],
        )
        raise IntegrityGap("Paiement reçu mais commande non enregistrée, contactez le support")

    if reserve:
        _reserve_stock(snapshot, order.get("id"))

    cleared = _clear_cart_after_order(user, order)
    logger.info(
        "checkout.verify state=%s user_id=%s order_id=%s total=%s",
        CheckoutState.FULFILLED.value, user_id, order.get("id"), order.get("total_amount"),
    )
    return {"state": CheckoutState.FULFILLED, "order": order, "cart_cleared": cleared}

def report_failure(user_id: str, provider_order_id: Optional[str], error: Any, *, gateway: PaymentGateway) -> Dict[str, Any]:
    """
    Échec côté client: audit, réponse toujours « succès ».
    Sans détail d'erreur, le client a fermé le paiement: Cancelled, sinon Failed.
    """
    state = CheckoutState.FAILED if error else CheckoutState.CANCELLED
    logger.info("checkout.failure state=%s user_id=%s provider_order_id=%s", state.value, user_id, provider_order_id)
    return dict(gateway.on_failure(provider_order_id, error, user_id=user_id), state=state.value)
