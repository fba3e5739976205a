# module storefront.products.views
"""Catalogue: lecture publique, administration réservée au rôle admin."""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional

from storefront.utils.security import require_admin
from . import service

router = APIRouter(prefix="/api/products", tags=["Products API"])

class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0)
    category: str = Field(min_length=1)
    image_url: str = ""
    stock: int = Field(default=0, ge=0)
    is_active: bool = True

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1)
    image_url: Optional[str] = None
    stock: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None

@router.get("")
def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    price_min: Optional[float] = Query(default=None, ge=0),
    price_max: Optional[float] = Query(default=None, ge=0),
):
    return service.list_products(category=category, search=search, price_min=price_min, price_max=price_max)

@router.get("/{product_id}")
def get_product(product_id: str):
    return service.get_product(product_id)

@router.post("", status_code=201)
def create_product(body: ProductCreate, admin: Dict[str, Any] = Depends(require_admin)):
    return service.create_product(body.model_dump())

@router.put("/{product_id}")
def update_product(product_id: str, body: ProductUpdate, admin: Dict[str, Any] = Depends(require_admin)):
    return service.update_product(product_id, body.model_dump(exclude_unset=True))

@router.delete("/{product_id}")
def delete_product(product_id: str, admin: Dict[str, Any] = Depends(require_admin)):
    service.delete_product(product_id)
    return {"message": "Produit supprimé"}
