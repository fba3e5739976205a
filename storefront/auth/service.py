from typing import Optional, Dict, Any
import logging

from storefront.auth.models import AuthResponse, make_auth_response, handle_exception, determine_role
from storefront.users import repository as users_repository
from . import repository

logger = logging.getLogger(__name__)

# --- Cas d'usage Auth exposés ---

def login(email: str, password: str) -> AuthResponse:
    """Connexion:
    - Délègue à supabase.auth.sign_in_with_password via repository
    - Normalise la réponse en AuthResponse
    """
    try:
        email = (email or "").strip().lower()
        res = repository.auth_sign_in_password(email, password)
        return make_auth_response(res, fallback_error="Identifiants invalides")
    except Exception as e:
        msg = str(e).lower()
        if "invalid" in msg or "credentials" in msg:
            return AuthResponse(False, error="Identifiants invalides")
        return handle_exception("sign_in", e)

def register(email: str, password: str, wants_admin: bool = False) -> AuthResponse:
    """Inscription:
    - Refuse un email déjà présent dans la table users (conflict=True)
    - Injecte le rôle admin dans user_metadata si le code admin a été validé
    - Crée le profil applicatif (panier et wishlist vides)
    - Retourne la session si Supabase en délivre une, sinon un succès sans token
      (confirmation d'email activée côté projet)
    """
    try:
        email = (email or "").strip().lower()
        if users_repository.get_user_by_email(email):
            return AuthResponse(False, error="Utilisateur existe déjà", conflict=True)

        options_data = {"role": "admin"} if wants_admin else None
        res = repository.auth_sign_up_account(email=email, password=password, options_data=options_data)

        user = getattr(res, "user", None)
        uid = getattr(user, "id", None)
        if uid:
            sync_user_profile(uid, email, "admin" if wants_admin else "user")

        sess = getattr(res, "session", None)
        if sess and getattr(sess, "access_token", None):
            return make_auth_response(res)
        return AuthResponse(True, user={"id": uid, "email": email}, error="Inscription réussie, vérifiez votre email")
    except Exception as e:
        msg = str(e).lower()
        if any(k in msg for k in ["already", "registered", "exists", "23505"]):
            return AuthResponse(False, error="Utilisateur existe déjà", conflict=True)
        return handle_exception("sign_up", e)

# --- Intégration sécurité / profil ---

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise user issu de supabase.auth.get_user(access_token):
    - Retourne {id, email, metadata, role, token}
    - Le rôle vient de la table users, pas de user_metadata
    """
    raw = repository.get_user_from_access_token(access_token)
    metadata = raw.get("user_metadata") or {}
    profile = users_repository.get_user_by_id(raw.get("id"))
    return {
        "id": raw.get("id"),
        "email": raw.get("email"),
        "metadata": metadata,
        "role": determine_role(profile),
        "token": access_token,
    }

def sync_user_profile(user_id: str, email: str, role: Optional[str] = None) -> bool:
    """Synchronisation best-effort du profil applicatif (table users)."""
    ok = users_repository.upsert_user_profile(user_id, email, role)
    if not ok:
        logger.warning("auth.sync_user_profile failed user_id=%s", user_id)
    return ok
