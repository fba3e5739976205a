"""Cas d'usage du catalogue: consultation publique et administration des produits."""
from typing import Any, Dict, List, Optional
from decimal import Decimal, InvalidOperation
import logging

from storefront.errors import NotFound, UpstreamError, ValidationError
from storefront.products import repository

logger = logging.getLogger(__name__)

def price_of(product: Dict[str, Any]) -> Decimal:
    """
    Prix d'un produit en Decimal.
    - Autorise product["price"] à être str|float|int|Decimal.
    - Retourne Decimal("0") si parsing impossible.
    """
    try:
        return Decimal(str(product.get("price") or 0))
    except (InvalidOperation, ValueError):
        return Decimal("0")

def stock_of(product: Dict[str, Any]) -> int:
    try:
        return max(int(product.get("stock") or 0), 0)
    except (TypeError, ValueError):
        return 0

def is_available(product: Optional[Dict[str, Any]]) -> bool:
    """Un produit est « résolu » s'il existe et n'est pas désactivé."""
    return bool(product) and product.get("is_active", True) is not False

def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
) -> List[dict]:
    if price_min is not None and price_max is not None and price_min > price_max:
        raise ValidationError("price_min doit être inférieur ou égal à price_max")
    return repository.list_products(
        category=category,
        search=search,
        price_min=price_min,
        price_max=price_max,
    )

def get_product(product_id: str) -> dict:
    product = repository.get_product(product_id)
    if not product:
        raise NotFound("Produit introuvable")
    return product

def get_available_product(product_id: str) -> dict:
    """Produit existant et actif, sinon NotFound (utilisé par panier et wishlist)."""
    product = repository.get_product(product_id)
    if not is_available(product):
        raise NotFound("Produit introuvable")
    return product

def _normalize(data: Dict[str, Any]) -> Dict[str, Any]:
    payload = {k: v for k, v in data.items() if v is not None}
    if "category" in payload:
        payload["category"] = str(payload["category"]).strip().lower()
    if "name" in payload:
        payload["name"] = str(payload["name"]).strip()
    if "description" in payload:
        payload["description"] = str(payload["description"]).strip()
    if "price" in payload:
        payload["price"] = float(payload["price"])
    return payload

def create_product(data: Dict[str, Any]) -> dict:
    payload = _normalize(data)
    payload.setdefault("stock", 0)
    payload.setdefault("image_url", "")
    payload.setdefault("is_active", True)
    created = repository.create_product(payload)
    if not created:
        raise UpstreamError("Impossible de créer le produit")
    logger.info("products.create id=%s name=%s", created.get("id"), created.get("name"))
    return created

def update_product(product_id: str, data: Dict[str, Any]) -> dict:
    """Mise à jour partielle: les champs absents (None) conservent leur valeur."""
    get_product(product_id)
    payload = _normalize(data)
    if not payload:
        raise ValidationError("Aucun champ à mettre à jour")
    updated = repository.update_product(product_id, payload)
    if not updated:
        raise UpstreamError("Impossible de mettre à jour le produit")
    return updated

def delete_product(product_id: str) -> None:
    get_product(product_id)
    if not repository.delete_product(product_id):
        raise UpstreamError("Impossible de supprimer le produit")
    logger.info("products.delete id=%s", product_id)
