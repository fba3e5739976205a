"""
Cas d'usage 'cart': lit l'utilisateur, modifie le panier en mémoire, persiste
avec contrôle de version, puis renvoie le panier peuplé avec le catalogue courant.
Le stock est vérifié, jamais réservé.
"""
from typing import Any, Dict, List
import logging

from storefront.errors import Conflict, InvalidQuantity, NotFound, OutOfStock
from storefront.products import repository as products_repository
from storefront.products import service as products_service
from storefront.users import repository as users_repository
from . import logic

logger = logging.getLogger(__name__)

def load_user(user_id: str) -> Dict[str, Any]:
    user = users_repository.get_user_by_id(user_id)
    if not user:
        raise NotFound("Utilisateur introuvable")
    return user

def user_version(user: Dict[str, Any]) -> int:
    try:
        return int(user.get("version") or 0)
    except (TypeError, ValueError):
        return 0

def populated(lines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    products = products_repository.get_products_map(line["product_id"] for line in lines)
    return logic.populate_cart(lines, products)

def _persist(user: Dict[str, Any], lines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    saved = users_repository.save_user_lists(user["id"], expected_version=user_version(user), cart=lines)
    if saved is None:
        logger.warning("cart.persist version conflict user_id=%s", user["id"])
        raise Conflict("Le panier a été modifié par une autre requête, réessayez")
    return logic.normalize_lines(saved.get("cart"))

def get_cart(user_id: str) -> List[Dict[str, Any]]:
    user = load_user(user_id)
    return populated(logic.normalize_lines(user.get("cart")))

def add_to_cart(user_id: str, product_id: str, quantity: int = 1) -> List[Dict[str, Any]]:
    """
    Ajoute quantity au produit (fusion avec une ligne existante).
    - NotFound si le produit est absent ou désactivé
    - OutOfStock si quantité déjà au panier + quantity > stock
    """
    if quantity <= 0:
        raise InvalidQuantity()
    product = products_service.get_available_product(product_id)
    user = load_user(user_id)
    lines = logic.normalize_lines(user.get("cart"))

    requested = logic.quantity_in_cart(lines, product_id) + quantity
    stock = products_service.stock_of(product)
    if requested > stock:
        raise OutOfStock(f"Stock insuffisant (disponible: {stock})")

    return populated(_persist(user, logic.merge_line(lines, product_id, quantity)))

def update_cart_item(user_id: str, product_id: str, quantity: int) -> List[Dict[str, Any]]:
    """Remplace la quantité d'une ligne existante (quantity > 0 et <= stock)."""
    if quantity <= 0:
        raise InvalidQuantity()
    product = products_service.get_available_product(product_id)
    stock = products_service.stock_of(product)
    if quantity > stock:
        raise OutOfStock(f"Stock insuffisant (disponible: {stock})")

    user = load_user(user_id)
    lines = logic.normalize_lines(user.get("cart"))
    return populated(_persist(user, logic.set_line_quantity(lines, product_id, quantity)))

def remove_from_cart(user_id: str, product_id: str) -> List[Dict[str, Any]]:
    user = load_user(user_id)
    lines = logic.normalize_lines(user.get("cart"))
    if not logic.find_line(lines, product_id):
        return populated(lines)
    return populated(_persist(user, logic.remove_line(lines, product_id)))

def clear_cart(user_id: str) -> List[Dict[str, Any]]:
    user = load_user(user_id)
    _persist(user, [])
    return []
