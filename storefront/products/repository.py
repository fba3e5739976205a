"""
Accès aux données du catalogue (table 'products').
Lectures via le client anon, écritures via service-role.
Les lectures renvoient des valeurs neutres ([], None, {}) en cas d'erreur.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging
import re

import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "products"

# Caractères réservés par la syntaxe des filtres PostgREST (or=(...))
_FILTER_UNSAFE = re.compile(r"[,()*%\\]")

def _like_term(value: str) -> str:
    return _FILTER_UNSAFE.sub(" ", value or "").strip()

# module storefront.products.repository
def list_products(
    *,
    category: Optional[str] = None,
    search: Optional[str] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    include_inactive: bool = False,
) -> List[dict]:
    """
    Liste les produits, plus récents d'abord.
    - category / search: filtres insensibles à la casse (sous-chaîne)
    - search porte sur name et description
    - price_min / price_max: bornes incluses
    """
    try:
        query = supabase_client.get_supabase().table(TABLE).select("*")
        if not include_inactive:
            query = query.eq("is_active", True)
        term = _like_term(category or "")
        if term:
            query = query.ilike("category", f"%{term}%")
        term = _like_term(search or "")
        if term:
            query = query.or_(f"name.ilike.%{term}%,description.ilike.%{term}%")
        if price_min is not None:
            query = query.gte("price", price_min)
        if price_max is not None:
            query = query.lte("price", price_max)
        res = query.order("created_at", desc=True).execute()
        return res.data or []
    except Exception:
        logger.exception("products.repository.list_products failed")
        return []

def get_product(product_id: str) -> Optional[dict]:
    if not product_id:
        return None
    try:
        res = (
            supabase_client.get_supabase()
            .table(TABLE)
            .select("*")
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.get_product failed id=%s", product_id)
        return None

def fetch_products_by_ids(ids: List[str]) -> List[dict]:
    if not ids:
        return []
    try:
        res = (
            supabase_client.get_supabase()
            .table(TABLE)
            .select("*")
            .in_("id", [str(i) for i in ids])
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("products.repository.fetch_products_by_ids failed ids=%s", ids)
        return []

def get_products_map(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """
    Retourne un dict {id: produit} à partir d'une liste d'IDs (jointure explicite
    utilisée pour « peupler » panier, wishlist et lignes de commande).
    """
    unique = list(dict.fromkeys(str(i) for i in ids if i))
    products = fetch_products_by_ids(unique)
    return {str(p.get("id")): p for p in products}

def create_product(data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = supabase_client.get_service_supabase().table(TABLE).insert(data).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.create_product failed data=%s", data)
        return None

def update_product(product_id: str, data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update(data)
            .eq("id", product_id)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.update_product failed id=%s data=%s", product_id, data)
        return None

def delete_product(product_id: str) -> bool:
    try:
        supabase_client.get_service_supabase().table(TABLE).delete().eq("id", product_id).execute()
        return True
    except Exception:
        logger.exception("products.repository.delete_product failed id=%s", product_id)
        return False

def decrement_stock(product_id: str, quantity: int, expected_stock: int) -> bool:
    """
    Décrémente le stock si la valeur lue n'a pas changé entre-temps.
    Retourne False si aucune ligne n'a été modifiée (stock concurrent ou erreur)
    ou si le stock lu ne couvre pas la quantité.
    """
    if quantity <= 0 or expected_stock < quantity:
        return False
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update({"stock": expected_stock - quantity})
            .eq("id", product_id)
            .eq("stock", expected_stock)
            .execute()
        )
        return bool(res.data)
    except Exception:
        logger.exception("products.repository.decrement_stock failed id=%s qty=%s", product_id, quantity)
        return False
