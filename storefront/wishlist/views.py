from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict

from storefront.utils.security import require_user
from . import service

router = APIRouter(prefix="/api/wishlist", tags=["Wishlist API"])

class WishlistAddRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId", min_length=1)

@router.get("")
def get_wishlist(user: Dict[str, Any] = Depends(require_user)):
    return service.get_wishlist(user["id"])

@router.post("/add")
def add_to_wishlist(body: WishlistAddRequest, user: Dict[str, Any] = Depends(require_user)):
    return service.add_to_wishlist(user["id"], body.product_id)

@router.delete("/remove/{product_id}")
def remove_from_wishlist(product_id: str, user: Dict[str, Any] = Depends(require_user)):
    return service.remove_from_wishlist(user["id"], product_id)
