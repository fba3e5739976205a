"""
Adaptateur de paiement: centralise les appels au fournisseur (Stripe) et la
vérification des callbacks signés.

La passerelle est construite puis injectée (dépendance FastAPI
get_payment_gateway), jamais utilisée comme singleton de module: les tests la
remplacent par une implémentation factice via app.dependency_overrides.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional
import hashlib
import hmac
import json
import logging

import stripe

from storefront.errors import InvalidAmount, NotFound, UpstreamError
from storefront.payments import repository

logger = logging.getLogger(__name__)

# Limite Stripe par valeur de metadata
METADATA_VALUE_LIMIT = 500
# Stripe accepte 50 clés; on en garde pour user_id/lines
METADATA_MAX_LINES = 45

# module storefront.payments.gateway
def to_minor_units(amount: Any) -> int:
    """Montant en unités mineures (centimes/paise): round(amount x 100)."""
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    """hex(HMAC-SHA256(secret, order_id + "|" + payment_id))"""
    body = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

def verify_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """
    Vérifie la signature d'un callback de paiement.
    - Comparaison à temps constant
    - Ne lève jamais: toute entrée manquante ou mal formée renvoie False
    """
    if not (order_id and payment_id and signature and secret):
        return False
    try:
        expected = compute_signature(str(order_id), str(payment_id), str(secret))
        return hmac.compare_digest(expected, str(signature))
    except Exception:
        logger.exception("payments.verify_signature unexpected error order_id=%s", order_id)
        return False

def encode_metadata(metadata: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Stripe n'accepte que des valeurs str (tronquées à 500 caractères)."""
    encoded: Dict[str, str] = {}
    for key, value in (metadata or {}).items():
        text = value if isinstance(value, str) else json.dumps(value, default=str)
        encoded[str(key)] = text[:METADATA_VALUE_LIMIT]
    return encoded


class PaymentGateway:
    """Contrat de la passerelle: intention de paiement, signature, échec, consultation."""

    public_key: str = ""
    signing_secret: str = ""
    currency: str = "inr"

    def create_intent(self, amount: Any, currency: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        raise NotImplementedError

    def retrieve_intent(self, intent_id: str) -> Dict[str, Any]:
        """Relit une intention créée: {"intent_id", "provider_amount", "currency", "metadata"}."""
        raise NotImplementedError

    def fetch_payment(self, payment_id: str) -> Dict[str, Any]:
        raise NotImplementedError

    def verify_signature(self, order_id: str, payment_id: str, signature: str, secret: Optional[str] = None) -> bool:
        return verify_signature(order_id, payment_id, signature, secret or self.signing_secret)

    def on_failure(self, order_id: Optional[str], error_detail: Any, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Trace un échec de paiement côté client pour audit.
        Ne lève jamais: le signalement d'un échec ne doit pas faire échouer la requête.
        """
        try:
            logger.warning("payments.failure order_id=%s user_id=%s error=%s", order_id, user_id, error_detail)
            repository.record_payment_failure(user_id=user_id, provider_order_id=order_id, error=error_detail)
        except Exception:
            logger.exception("payments.on_failure could not record failure order_id=%s", order_id)
        return {"success": False, "msg": "Paiement échoué, veuillez réessayer"}

    @staticmethod
    def _check_amount(amount: Any) -> int:
        try:
            minor = to_minor_units(amount)
        except Exception:
            raise InvalidAmount()
        if minor <= 0:
            raise InvalidAmount()
        return minor


class StripeGateway(PaymentGateway):
    """
    Passerelle Stripe (PaymentIntents).
    - Client StripeClient dédié, sans retry automatique, borné par timeout
    - Les erreurs SDK (réseau, timeout, API) deviennent UpstreamError
    """

    def __init__(
        self,
        *,
        secret_key: str,
        public_key: str = "",
        signing_secret: str = "",
        currency: str = "inr",
        timeout: float = 10.0,
        client: Any = None,
    ):
        self.public_key = public_key
        self.signing_secret = signing_secret or secret_key
        self.currency = (currency or "inr").lower()
        self.timeout = timeout
        self._client = client or stripe.StripeClient(
            secret_key,
            http_client=stripe.RequestsClient(timeout=timeout),
            max_network_retries=0,
        )

    def create_intent(self, amount: Any, currency: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Crée une intention de paiement.
        Retour: {"intent_id", "provider_amount", "currency", "public_key"}
        """
        minor = self._check_amount(amount)
        cur = (currency or self.currency).lower()
        try:
            intent = self._client.payment_intents.create(params={
                "amount": minor,
                "currency": cur,
                "metadata": encode_metadata(metadata),
                "automatic_payment_methods": {"enabled": True},
            })
        except stripe.StripeError as e:
            logger.exception("payments.create_intent failed amount=%s currency=%s", minor, cur)
            raise UpstreamError(f"Création du paiement impossible: {getattr(e, 'user_message', None) or 'fournisseur indisponible'}")
        intent = dict(intent)
        return {
            "intent_id": intent.get("id"),
            "provider_amount": intent.get("amount", minor),
            "currency": intent.get("currency", cur),
            "public_key": self.public_key,
        }

    def retrieve_intent(self, intent_id: str) -> Dict[str, Any]:
        try:
            intent = self._client.payment_intents.retrieve(intent_id)
        except stripe.InvalidRequestError:
            logger.warning("payments.retrieve_intent unknown intent_id=%s", intent_id)
            raise NotFound("Intention de paiement introuvable")
        except stripe.StripeError:
            logger.exception("payments.retrieve_intent failed intent_id=%s", intent_id)
            raise UpstreamError("Lecture de l'intention de paiement impossible")
        intent = dict(intent)
        return {
            "intent_id": intent.get("id"),
            "provider_amount": intent.get("amount"),
            "currency": intent.get("currency"),
            "metadata": dict(intent.get("metadata") or {}),
        }

    def fetch_payment(self, payment_id: str) -> Dict[str, Any]:
        try:
            if str(payment_id).startswith("ch_"):
                payment = self._client.charges.retrieve(payment_id)
            else:
                payment = self._client.payment_intents.retrieve(payment_id)
        except stripe.StripeError:
            logger.exception("payments.fetch_payment failed payment_id=%s", payment_id)
            raise UpstreamError("Lecture du paiement impossible")
        return dict(payment)


def get_payment_gateway() -> PaymentGateway:
    """Dépendance FastAPI: construit la passerelle depuis la configuration."""
    from storefront.config import (
        STRIPE_SECRET_KEY,
        STRIPE_PUBLIC_KEY,
        PAYMENT_SIGNING_SECRET,
        PAYMENT_CURRENCY,
        PAYMENT_TIMEOUT_SECONDS,
    )
    if not STRIPE_SECRET_KEY:
        raise UpstreamError("STRIPE_SECRET_KEY manquant: paiement indisponible")
    return StripeGateway(
        secret_key=STRIPE_SECRET_KEY,
        public_key=STRIPE_PUBLIC_KEY,
        signing_secret=PAYMENT_SIGNING_SECRET,
        currency=PAYMENT_CURRENCY,
        timeout=PAYMENT_TIMEOUT_SECONDS,
    )
