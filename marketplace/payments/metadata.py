"""
Sérialisation/désérialisation du payload de commande en attente (metadata de transaction).
La passerelle est le seul support durable du payload entre initiation et vérification.
"""
import json
import logging
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError as PydanticValidationError

from marketplace import config
from marketplace.cart.models import CartLine
from marketplace.cart.service import cart_total
from marketplace.checkout.validator import CheckoutForm
from marketplace.errors import ValidationError
from marketplace.orders.models import PendingOrderItem, PendingOrderPayload

logger = logging.getLogger(__name__)

METADATA_KEY = "order_data"

# module marketplace.payments.metadata
def build_pending_order(user_id: str, form: CheckoutForm, lines: List[CartLine], payment_method: str) -> PendingOrderPayload:
    """
    Assemble la commande en attente depuis le formulaire validé et les lignes du panier.
    - Prix unitaire figé à cet instant.
    - Vendeur: celui commun à toutes les lignes, sinon le vendeur agrégé MARKETPLACE_VENDOR_ID.
    """
    if not lines:
        raise ValidationError("Cart is empty")
    vendors = {line.vendor_id for line in lines}
    if len(vendors) == 1 and None not in vendors:
        vendor_id = vendors.pop()
    else:
        vendor_id = config.MARKETPLACE_VENDOR_ID
        logger.info("payments.metadata.build_pending_order multi-vendor cart user_id=%s vendors=%s", user_id, sorted(v or "?" for v in vendors))
    return PendingOrderPayload(
        customer_id=user_id,
        vendor_id=vendor_id,
        total_amount=cart_total(lines),
        payment_method=payment_method,
        delivery_address=form.delivery_address,
        delivery_phone=form.phone,
        notes=form.notes,
        items=[
            PendingOrderItem(product_id=line.product_id, quantity=line.quantity, unit_price=line.unit_price)
            for line in lines
        ],
    )

def parse_order_data(order_data: Any) -> PendingOrderPayload:
    """
    Valide un payload brut (dict ou JSON) en PendingOrderPayload.
    Soulève ValidationError("Invalid order data", details=...) si malformé.
    """
    if isinstance(order_data, (str, bytes)):
        try:
            order_data = json.loads(order_data)
        except ValueError:
            raise ValidationError("Invalid order data", details="order_data is not valid JSON")
    if not isinstance(order_data, Mapping):
        raise ValidationError("Invalid order data", details="order_data must be an object")
    try:
        return PendingOrderPayload.model_validate(dict(order_data))
    except PydanticValidationError as e:
        details = {".".join(str(p) for p in err.get("loc", ())): err.get("msg") for err in e.errors()}
        raise ValidationError("Invalid order data", details=details)

def serialize_order_data(payload: PendingOrderPayload) -> str:
    """JSON compact du payload, items inclus (prix unitaires figés)."""
    data = payload.model_dump(mode="json")
    data["total_amount"] = float(payload.total_amount)
    for item in data.get("items") or []:
        item["unit_price"] = float(item["unit_price"])
    return json.dumps(data, separators=(",", ":"))

def make_transaction_metadata(payload: PendingOrderPayload) -> Dict[str, str]:
    return {METADATA_KEY: serialize_order_data(payload)}

def extract_order_data(transaction: Mapping[str, Any]) -> PendingOrderPayload:
    """
    Extrait le payload depuis transaction.metadata.order_data (réponse de vérification).
    - metadata peut être un objet ou une chaîne JSON selon la passerelle.
    - Soulève ValidationError si absent ou invalide.
    """
    meta = (transaction or {}).get("metadata")
    if isinstance(meta, str):
        try:
            meta = json.loads(meta)
        except ValueError:
            meta = None
    if not isinstance(meta, Mapping) or not meta.get(METADATA_KEY):
        raise ValidationError("Invalid order data", details="order_data missing from transaction metadata")
    return parse_order_data(meta[METADATA_KEY])
