"""Cas d'usage 'wishlist': ensemble d'IDs produits embarqué dans la ligne users."""
from typing import Any, Dict, List
import logging

from storefront.cart.service import load_user, user_version
from storefront.errors import Conflict
from storefront.products import repository as products_repository
from storefront.products import service as products_service
from storefront.users import repository as users_repository

logger = logging.getLogger(__name__)

def _ids(user: Dict[str, Any]) -> List[str]:
    # dédoublonne en conservant l'ordre d'ajout
    return list(dict.fromkeys(str(i) for i in (user.get("wishlist") or []) if i))

def _populated(ids: List[str]) -> List[Dict[str, Any]]:
    products = products_repository.get_products_map(ids)
    return [products[i] for i in ids if products_service.is_available(products.get(i))]

def _persist(user: Dict[str, Any], ids: List[str]) -> List[str]:
    saved = users_repository.save_user_lists(user["id"], expected_version=user_version(user), wishlist=ids)
    if saved is None:
        logger.warning("wishlist.persist version conflict user_id=%s", user["id"])
        raise Conflict("La wishlist a été modifiée par une autre requête, réessayez")
    return [str(i) for i in (saved.get("wishlist") or [])]

def get_wishlist(user_id: str) -> List[Dict[str, Any]]:
    return _populated(_ids(load_user(user_id)))

def add_to_wishlist(user_id: str, product_id: str) -> List[Dict[str, Any]]:
    products_service.get_available_product(product_id)
    user = load_user(user_id)
    ids = _ids(user)
    if product_id in ids:
        return _populated(ids)
    return _populated(_persist(user, ids + [product_id]))

def remove_from_wishlist(user_id: str, product_id: str) -> List[Dict[str, Any]]:
    user = load_user(user_id)
    ids = _ids(user)
    if product_id not in ids:
        return _populated(ids)
    return _populated(_persist(user, [i for i in ids if i != product_id]))
