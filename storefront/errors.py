"""
Taxonomie des erreurs métier de la boutique.

Toutes les erreurs dérivent de HTTPException: les services les lèvent
directement (comme la logique panier le fait avec HTTPException(400)) et le
handler global les convertit en {"detail", "code"}.
"""
from typing import Optional
from fastapi import HTTPException


class StorefrontError(HTTPException):
    status_code = 500
    code = "error"
    default_detail = "Erreur"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class ValidationError(StorefrontError):
    status_code = 400
    code = "validation_error"
    default_detail = "Requête invalide"


class InvalidQuantity(ValidationError):
    code = "invalid_quantity"
    default_detail = "La quantité doit être supérieure à 0"


class InvalidAmount(ValidationError):
    code = "invalid_amount"
    default_detail = "Montant invalide"


class OutOfStock(ValidationError):
    code = "out_of_stock"
    default_detail = "Stock insuffisant"


class EmptyCart(ValidationError):
    code = "empty_cart"
    default_detail = "Le panier est vide"


class InvalidTransition(ValidationError):
    code = "invalid_transition"
    default_detail = "Transition de statut interdite"


class PaymentVerificationFailed(StorefrontError):
    status_code = 400
    code = "payment_verification_failed"
    default_detail = "Vérification du paiement échouée"


class Unauthorized(StorefrontError):
    status_code = 401
    code = "unauthorized"
    default_detail = "Non authentifié"


class Forbidden(StorefrontError):
    status_code = 403
    code = "forbidden"
    default_detail = "Accès interdit"


class NotFound(StorefrontError):
    status_code = 404
    code = "not_found"
    default_detail = "Ressource introuvable"


class Conflict(StorefrontError):
    status_code = 409
    code = "conflict"
    default_detail = "Conflit"


class UpstreamError(StorefrontError):
    status_code = 500
    code = "upstream_error"
    default_detail = "Service externe indisponible"


class IntegrityGap(StorefrontError):
    """Paiement/commande/panier désynchronisés: réconciliation manuelle requise."""
    status_code = 500
    code = "integrity_gap"
    default_detail = "Incohérence commande/paiement, contactez le support"
