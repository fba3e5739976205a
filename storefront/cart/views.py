from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict

from storefront.utils.security import require_user
from . import service

router = APIRouter(prefix="/api/cart", tags=["Cart API"])

class CartItemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId", min_length=1)
    # la validation > 0 est faite par le service (InvalidQuantity)
    quantity: int = 1

class CartQuantityRequest(BaseModel):
    quantity: int

class CartRemoveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId", min_length=1)

@router.get("")
def get_cart(user: Dict[str, Any] = Depends(require_user)):
    return service.get_cart(user["id"])

@router.post("/add")
def add_to_cart(body: CartItemRequest, user: Dict[str, Any] = Depends(require_user)):
    return service.add_to_cart(user["id"], body.product_id, body.quantity)

@router.put("/update/{product_id}")
def update_cart_item(product_id: str, body: CartQuantityRequest, user: Dict[str, Any] = Depends(require_user)):
    return service.update_cart_item(user["id"], product_id, body.quantity)

@router.post("/remove")
def remove_from_cart(body: CartRemoveRequest, user: Dict[str, Any] = Depends(require_user)):
    return service.remove_from_cart(user["id"], body.product_id)

@router.delete("/clear")
def clear_cart(user: Dict[str, Any] = Depends(require_user)):
    return service.clear_cart(user["id"])
