"""Couche service des commandes: consultation propriétaire, annulation, suivi de statut.
Les commandes sont créées uniquement par le checkout (storefront.checkout.service).
"""
from typing import Any, Dict, List
import logging

from storefront.errors import Conflict, NotFound
from storefront.orders import repository
from storefront.orders.models import check_cancellable, check_transition, OrderStatus
from storefront.products import repository as products_repository

logger = logging.getLogger(__name__)

def with_products(orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Ajoute à chaque ligne le produit courant (affichage). Le prix capturé
    (items[].price) n'est jamais remplacé; product vaut None si supprimé.
    """
    ids = [item.get("product_id") for order in orders for item in (order.get("items") or [])]
    products = products_repository.get_products_map(ids)
    enriched = []
    for order in orders:
        items = [dict(item, product=products.get(str(item.get("product_id")))) for item in (order.get("items") or [])]
        enriched.append(dict(order, items=items))
    return enriched

def list_orders(user_id: str) -> List[Dict[str, Any]]:
    return with_products(repository.list_user_orders(user_id))

def get_order(order_id: str, user_id: str) -> Dict[str, Any]:
    order = repository.get_order(order_id, user_id=user_id)
    if not order:
        raise NotFound("Commande introuvable")
    return with_products([order])[0]

def _apply(order: Dict[str, Any], target: OrderStatus) -> Dict[str, Any]:
    updated = repository.update_order_status(order["id"], target.value, expected_status=order["status"])
    if not updated:
        raise Conflict("Le statut de la commande a changé, réessayez")
    logger.info("orders.status id=%s %s -> %s", order["id"], order["status"], target.value)
    return updated

def cancel_order(order_id: str, user_id: str) -> Dict[str, Any]:
    """Annulation par le propriétaire, seulement depuis Pending ou Paid."""
    order = repository.get_order(order_id, user_id=user_id)
    if not order:
        raise NotFound("Commande introuvable")
    check_cancellable(order.get("status") or "")
    return _apply(order, OrderStatus.CANCELLED)

def update_status(order_id: str, status: str) -> Dict[str, Any]:
    """Suivi logistique (admin): applique la table de transitions."""
    order = repository.get_order(order_id)
    if not order:
        raise NotFound("Commande introuvable")
    target = check_transition(order.get("status") or "", status)
    return _apply(order, target)
