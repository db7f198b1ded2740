"""
Soumission du checkout: formulaire validé + panier -> paiement en ligne ou commande COD.
"""
from typing import Any, Dict, Optional
import logging
import time

from marketplace import config
from marketplace.cart.service import CartService
from marketplace.checkout.validator import require_valid_checkout_form
from marketplace.errors import PersistenceError, ValidationError
from marketplace.orders import service as orders_service
from marketplace.orders.models import PaymentMethod
from marketplace.payments import metadata as meta
from marketplace.payments import service as payments_service

logger = logging.getLogger(__name__)


def new_payment_reference() -> str:
    return f"order_{int(time.time() * 1000)}"

# module marketplace.checkout.service
async def submit_checkout(
    user: Dict[str, Any],
    form_data: Dict[str, Any],
    payment_method: str,
    origin: Optional[str] = None,
    cart: Optional[CartService] = None,
) -> Dict[str, Any]:
    """
    Étapes:
      1) valider le formulaire (ValidationError + carte des champs)
      2) charger le panier; vide -> ValidationError("Cart is empty")
      3) construire la commande en attente (prix figés)
      4) paystack: ouvrir la transaction; cod: persister la commande et retirer les produits achetés
    """
    form = require_valid_checkout_form(form_data)
    user_id = str(user.get("id") or "")
    cart = cart or CartService(user_id)

    try:
        method = PaymentMethod(str(payment_method or "").lower())
    except ValueError:
        raise ValidationError("Invalid payment method", details={"payment_method": str(payment_method)})

    lines = cart.lines()
    if not lines:
        raise ValidationError("Cart is empty")
    payload = meta.build_pending_order(user_id, form, lines, method.value)

    if method is PaymentMethod.paystack:
        reference = new_payment_reference()
        data = await payments_service.initiate_payment(
            {
                "amount": payments_service.to_subunit(payload.total_amount),
                "email": form.email,
                "reference": reference,
                "orderData": payload,
            },
            origin=origin,
        )
        logger.info("checkout.submit paystack user_id=%s reference=%s", user_id, reference)
        return {
            "payment_method": method.value,
            "reference": data.get("reference") or reference,
            "authorization_url": data.get("authorization_url"),
            "access_code": data.get("access_code"),
        }

    order = orders_service.create_cod_order(payload, user_token=cart.user_token)
    try:
        cart.remove_products(item.product_id for item in payload.items)
    except PersistenceError as e:
        # Commande déjà enregistrée: échec du nettoyage journalisé seulement
        logger.warning("checkout.submit cart cleanup failed user_id=%s order_id=%s error=%s", user_id, order.id, e.details)
    logger.info("checkout.submit cod user_id=%s order_id=%s", user_id, order.id)
    return {"payment_method": method.value, "order_id": order.id, "redirect_to": "/orders"}
