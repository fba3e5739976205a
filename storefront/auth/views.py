from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict, Any
import logging

from storefront.errors import Conflict, Unauthorized, ValidationError
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.security import require_user, set_session_cookie, clear_session_cookie
from storefront.cart import service as cart_service
from storefront.wishlist import service as wishlist_service
from . import service
from .admin_code import check_code

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth API"])

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    admin_code: Optional[str] = None

def admin_code_ok(code: Optional[str]) -> bool:
    # lu à l'appel pour que les tests puissent patcher la config
    from storefront.config import ADMIN_SECRET_HASH
    return check_code(code, ADMIN_SECRET_HASH)

@router.post("/register", status_code=201, dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def api_register(req: RegisterRequest, response: Response):
    """Inscription (API JSON).
    - 409 si l'email existe déjà
    - Pose le cookie de session si Supabase délivre une session
    - Retourne {id, email, token} (token None si confirmation d'email requise)
    """
    result = service.register(req.email, req.password, wants_admin=admin_code_ok(req.admin_code))
    if not result.success:
        if result.conflict:
            raise Conflict(result.error or "Utilisateur existe déjà")
        raise ValidationError(result.error or "Erreur inscription")
    if result.access_token:
        set_session_cookie(response, result.access_token)
    return result.to_public()

@router.post("/login", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def api_login(req: LoginRequest, response: Response):
    """Connexion: 401 si identifiants invalides, sinon cookie de session + {id, email, token}."""
    result = service.login(req.email, req.password)
    if not result.success:
        raise Unauthorized(result.error or "Identifiants invalides")

    user = result.user or {}
    try:
        # Best-effort: garantit la ligne users (panier/wishlist) pour les comptes créés hors API
        # sans rôle: celui déjà en base est conservé
        service.sync_user_profile(user.get("id"), user.get("email"))
    except Exception:
        logger.exception("auth.login sync_user_profile failed user_id=%s", user.get("id"))

    set_session_cookie(response, result.access_token)
    return result.to_public()

@router.post("/logout")
def api_logout(response: Response):
    """Supprime le cookie de session."""
    clear_session_cookie(response)
    return {"message": "Déconnexion réussie"}

@router.get("/me")
def api_me(user: Dict[str, Any] = Depends(require_user)):
    """Utilisateur courant avec panier et wishlist peuplés."""
    return {
        "id": user["id"],
        "email": user["email"],
        "role": user["role"],
        "cart": cart_service.get_cart(user["id"]),
        "wishlist": wishlist_service.get_wishlist(user["id"]),
    }
