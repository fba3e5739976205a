from typing import Any, Dict, List, Optional
import logging

from postgrest.exceptions import APIError

import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "orders"

def create_order(data: Dict[str, Any]) -> Optional[dict]:
    """
    Insère une commande (service-role) et retourne la ligne créée, None si échec.
    provider_order_id est unique: sur doublon (23505, vérifications concurrentes)
    la commande déjà enregistrée est renvoyée.
    """
    try:
        res = supabase_client.get_service_supabase().table(TABLE).insert(data).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except APIError as e:
        if getattr(e, "code", None) == "23505":
            logger.info("orders.repository.create_order duplicate provider_order_id=%s", data.get("provider_order_id"))
            return get_order_by_provider_order_id(data.get("provider_order_id"))
        logger.exception("orders.repository.create_order failed user_id=%s", data.get("user_id"))
        return None
    except Exception:
        logger.exception("orders.repository.create_order failed user_id=%s", data.get("user_id"))
        return None

def list_user_orders(user_id: str) -> List[dict]:
    """Commandes de l'utilisateur, plus récentes d'abord ([] en cas d'erreur)."""
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_user_orders failed user_id=%s", user_id)
        return []

def get_order(order_id: str, user_id: Optional[str] = None) -> Optional[dict]:
    """Commande par id; filtrée sur user_id si fourni (contrôle propriétaire)."""
    if not order_id:
        return None
    try:
        query = supabase_client.get_service_supabase().table(TABLE).select("*").eq("id", order_id)
        if user_id is not None:
            query = query.eq("user_id", user_id)
        res = query.limit(1).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.get_order failed id=%s", order_id)
        return None

def get_order_by_provider_order_id(provider_order_id: str) -> Optional[dict]:
    if not provider_order_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("provider_order_id", provider_order_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.get_order_by_provider_order_id failed id=%s", provider_order_id)
        return None

def update_order_status(order_id: str, status: str, expected_status: str) -> Optional[dict]:
    """
    Change uniquement la colonne status, si elle vaut encore expected_status.
    Retourne la ligne mise à jour, None si statut concurrent ou erreur.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update({"status": status})
            .eq("id", order_id)
            .eq("status", expected_status)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.update_order_status failed id=%s status=%s", order_id, status)
        return None
