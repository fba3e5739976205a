from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Any, Dict

from storefront.utils.security import require_admin, require_user
from . import service

router = APIRouter(prefix="/api/orders", tags=["Orders API"])

class StatusUpdateRequest(BaseModel):
    status: str

@router.get("")
def list_orders(user: Dict[str, Any] = Depends(require_user)):
    """Commandes de l'utilisateur, plus récentes d'abord, lignes peuplées."""
    return service.list_orders(user["id"])

@router.get("/{order_id}")
def get_order(order_id: str, user: Dict[str, Any] = Depends(require_user)):
    return service.get_order(order_id, user["id"])

@router.put("/{order_id}/cancel")
def cancel_order(order_id: str, user: Dict[str, Any] = Depends(require_user)):
    return service.cancel_order(order_id, user["id"])

@router.put("/{order_id}/status")
def update_order_status(order_id: str, body: StatusUpdateRequest, admin: Dict[str, Any] = Depends(require_admin)):
    return service.update_status(order_id, body.status)
