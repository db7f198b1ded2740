# module marketplace.checkout.views
"""Endpoint de soumission du checkout (/api/v1/checkout), protégé par require_user et rate limit."""
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from marketplace.cart.views import get_cart_service
from marketplace.cart.service import CartService
from marketplace.checkout import service as checkout_service
from marketplace.payments.views import request_origin
from marketplace.utils.rate_limit import optional_rate_limit
from marketplace.utils.security import require_user

router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])


class CheckoutRequest(BaseModel):
    payment_method: str = Field(default="paystack", alias="paymentMethod")
    form: Dict[str, Any] = Field(default_factory=dict, alias="formData")

    model_config = {"populate_by_name": True}


@router.post("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def submit_checkout(
    req: CheckoutRequest,
    request: Request,
    user: Dict[str, Any] = Depends(require_user),
    cart: CartService = Depends(get_cart_service),
):
    return await checkout_service.submit_checkout(
        user,
        req.form,
        req.payment_method,
        origin=request_origin(request),
        cart=cart,
    )
