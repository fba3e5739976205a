"""Couche d'accès aux données (Supabase) pour le domaine Utilisateurs.
La table users porte le profil applicatif et les agrégats embarqués:
- cart: liste JSON [{"product_id": str, "quantity": int}, ...] (ordre conservé)
- wishlist: liste JSON d'IDs produits (sans doublons)
- version: compteur d'écriture pour le contrôle de concurrence optimiste
Les lectures par email « catchent » les exceptions et renvoient None; la lecture
par id et les écritures d'agrégats lèvent UpstreamError en cas de panne de la base.
"""
from typing import Any, Dict, List, Optional
import logging

from storefront.errors import UpstreamError
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "users"

def get_user_by_id(user_id: str) -> Optional[dict]:
    """Récupère un utilisateur par id (table users).
    - Retour: dict utilisateur ou None si introuvable
    - Lève UpstreamError si la base est injoignable (une panne n'est pas un 404)
    """
    if not user_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
    except Exception:
        logger.exception("users.repository.get_user_by_id failed id=%s", user_id)
        raise UpstreamError("Base de données indisponible")
    rows = res.data or []
    return rows[0] if rows else None

def get_user_by_email(email: str) -> Optional[dict]:
    if not email:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("email", email)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("users.repository.get_user_by_email failed")
        return None

def upsert_user_profile(user_id: str, email: str, role: Optional[str] = None) -> bool:
    """Crée ou met à jour le profil (email, rôle) sans toucher panier ni wishlist.
    - Retour: True si succès, False sinon
    """
    if not user_id:
        return False
    payload: Dict[str, Any] = {"id": user_id, "email": email}
    if role:
        payload["role"] = role
    try:
        supabase_client.get_service_supabase().table(TABLE).upsert(payload).execute()
        return True
    except Exception:
        logger.exception("users.repository.upsert_user_profile failed id=%s", user_id)
        return False

def save_user_lists(
    user_id: str,
    *,
    expected_version: int,
    cart: Optional[List[Dict[str, Any]]] = None,
    wishlist: Optional[List[str]] = None,
) -> Optional[dict]:
    """
    Écrit cart et/ou wishlist si la version lue est toujours la version courante.
    - Incrémente version à chaque écriture réussie
    - Retourne la ligne mise à jour, ou None si la version a changé entre-temps
    - Lève UpstreamError si la base est injoignable
    """
    payload: Dict[str, Any] = {"version": expected_version + 1}
    if cart is not None:
        payload["cart"] = cart
    if wishlist is not None:
        payload["wishlist"] = wishlist
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update(payload)
            .eq("id", user_id)
            .eq("version", expected_version)
            .execute()
        )
    except Exception:
        logger.exception("users.repository.save_user_lists failed id=%s", user_id)
        raise UpstreamError("Base de données indisponible")
    rows = res.data or []
    return rows[0] if rows else None
