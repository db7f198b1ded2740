# module marketplace.cart.views
"""Endpoints Panier (/api/v1/cart), tous protégés par require_user.
Les opérations passent par CartService lié à l'utilisateur courant (RLS via son token).
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from marketplace.utils.security import require_user, user_token_from_request
from marketplace.cart.service import CartService

router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])


class AddItemRequest(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = 1


class UpdateQuantityRequest(BaseModel):
    quantity: int


def get_cart_service(request: Request, user: Dict[str, Any] = Depends(require_user)) -> CartService:
    return CartService(user.get("id"), user_token=user_token_from_request(request))


def _snapshot(cart: CartService) -> Dict[str, Any]:
    lines = cart.lines()
    return {
        "items": [line.to_dict() for line in lines],
        "total": float(cart.total(lines)),
        "item_count": cart.item_count(lines),
    }


@router.get("")
def get_cart(cart: CartService = Depends(get_cart_service)):
    return _snapshot(cart)


@router.post("/items")
def add_item(req: AddItemRequest, cart: CartService = Depends(get_cart_service)):
    cart.add(req.product_id, req.quantity)
    return _snapshot(cart)


@router.patch("/items/{product_id}")
def update_item(product_id: str, req: UpdateQuantityRequest, cart: CartService = Depends(get_cart_service)):
    cart.update_quantity(product_id, req.quantity)
    return _snapshot(cart)


@router.delete("/items/{product_id}")
def remove_item(product_id: str, cart: CartService = Depends(get_cart_service)):
    cart.remove(product_id)
    return _snapshot(cart)


@router.delete("")
def clear_cart(cart: CartService = Depends(get_cart_service)):
    cart.clear()
    return {"items": [], "total": 0.0, "item_count": 0}
