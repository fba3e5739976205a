# module storefront.payments.views
"""Endpoints du paiement.
- /create-order: recalcule le total du panier et crée l'intention chez le fournisseur
- /verify: vérifie la signature du callback puis convertit le panier en commande
- /failure: trace un échec de paiement côté client (toujours 200)
- /{payment_id}: détails du paiement chez le fournisseur
Sécurité:
- require_user sur toutes les routes; rate limit sur create-order et verify
- la passerelle est injectée (get_payment_gateway), remplaçable en tests
"""
from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from typing import Any, Dict, Optional
import logging

from storefront.checkout import pricing
from storefront.checkout import service as checkout_service
from storefront.errors import Forbidden
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.security import require_user
from .gateway import PaymentGateway, get_payment_gateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/payment", tags=["Payments API"])

class CreateOrderRequest(BaseModel):
    # montant client purement informatif, jamais utilisé pour facturer
    amount: Optional[float] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)

class ShippingAddress(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(alias="fullName", min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: Optional[str] = None
    zip_code: str = Field(alias="zipCode", min_length=1)
    country: str = Field(min_length=1)

class OrderData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    shipping_address: ShippingAddress = Field(alias="shippingAddress")

class VerifyRequest(BaseModel):
    provider_order_id: str = Field(
        validation_alias=AliasChoices("razorpay_order_id", "provider_order_id"), min_length=1
    )
    provider_payment_id: str = Field(
        validation_alias=AliasChoices("razorpay_payment_id", "provider_payment_id"), min_length=1
    )
    signature: str = Field(
        validation_alias=AliasChoices("razorpay_signature", "signature"), min_length=1
    )
    order_data: OrderData = Field(validation_alias=AliasChoices("orderData", "order_data"))

class FailureRequest(BaseModel):
    provider_order_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("razorpay_order_id", "provider_order_id")
    )
    error: Any = None

@router.post("/create-order", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_order(
    body: CreateOrderRequest,
    user: Dict[str, Any] = Depends(require_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Crée l'intention de paiement pour le total serveur du panier courant."""
    result = checkout_service.begin_checkout(
        user["id"],
        gateway=gateway,
        currency=body.currency,
        client_amount=body.amount,
    )
    intent = result["intent"]
    return {
        "orderId": intent["intent_id"],
        "amount": intent["provider_amount"],
        "currency": intent["currency"],
        "keyId": intent["public_key"],
        "totals": pricing.totals_as_floats(result["totals"]),
    }

@router.post("/verify", status_code=201, dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def verify_payment(
    body: VerifyRequest,
    user: Dict[str, Any] = Depends(require_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Vérifie la signature et crée la commande (idempotent par provider_order_id)."""
    result = checkout_service.complete_checkout(
        user["id"],
        provider_order_id=body.provider_order_id,
        provider_payment_id=body.provider_payment_id,
        signature=body.signature,
        shipping_address=body.order_data.shipping_address.model_dump(),
        gateway=gateway,
    )
    return {"success": True, "order": result["order"]}

@router.post("/failure")
def payment_failure(
    body: FailureRequest,
    user: Dict[str, Any] = Depends(require_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    return checkout_service.report_failure(user["id"], body.provider_order_id, body.error, gateway=gateway)

@router.get("/{payment_id}")
def get_payment(
    payment_id: str,
    user: Dict[str, Any] = Depends(require_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Détails fournisseur; un paiement d'un autre utilisateur n'est visible que par un admin."""
    payment = gateway.fetch_payment(payment_id)
    owner = (payment.get("metadata") or {}).get("user_id")
    if owner and owner != user["id"] and user.get("role") != "admin":
        raise Forbidden("Paiement appartenant à un autre utilisateur")
    return payment
