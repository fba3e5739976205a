from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

def determine_role(profile: Dict[str, Any] | None) -> str:
    """Rôle lu sur la ligne users (écrite côté serveur uniquement).
    user_metadata est modifiable par l'utilisateur lui-même: jamais consulté ici.
    """
    if str((profile or {}).get("role", "")).lower() == "admin":
        return "admin"
    return "user"

class AuthResponse:
    def __init__(
        self,
        success: bool,
        user: Optional[Dict[str, Any]] = None,
        session: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        conflict: bool = False,
    ):
        self.success = success
        self.user = user
        self.session = session
        self.error = error
        self.conflict = conflict

    @property
    def access_token(self):
        return (self.session or {}).get("access_token")

    def to_public(self) -> Dict[str, Any]:
        """Forme exposée par l'API: {id, email, token}."""
        user = self.user or {}
        return {"id": user.get("id"), "email": user.get("email"), "token": self.access_token}

def build_user_dict(user) -> Dict[str, Any]:
    metadata = getattr(user, "user_metadata", None) or {}
    return {
        "id": getattr(user, "id", None),
        "email": getattr(user, "email", None),
        "metadata": metadata,
    }

def build_session_dict(session) -> Dict[str, Any]:
    return {
        "access_token": getattr(session, "access_token", None),
        "refresh_token": getattr(session, "refresh_token", None),
    }

def make_auth_response(res, fallback_error: str = "Identifiants invalides") -> AuthResponse:
    sess = getattr(res, "session", None)
    user = getattr(res, "user", None)
    if not sess or not getattr(sess, "access_token", None):
        return AuthResponse(False, error=fallback_error)
    return AuthResponse(True, user=build_user_dict(user), session=build_session_dict(sess))

def handle_exception(action: str, e: Exception) -> AuthResponse:
    logger.exception("Erreur %s", action)
    return AuthResponse(False, error=f"Erreur {action}")
