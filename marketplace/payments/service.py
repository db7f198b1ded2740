"""
Cas d'usage 'payments': orchestre paystack_client, metadata, orders et cart.
- initiate_payment: valide puis ouvre une transaction (aucune écriture locale).
- verify_payment: seule porte vers une commande payée (garde d'idempotence sur la référence).
"""
from decimal import Decimal
from typing import Any, Dict, Literal, Optional
import logging
import re

import httpx
from pydantic import BaseModel

from marketplace import config
from marketplace.cart import repository as cart_repository
from marketplace.errors import AnomalyError, GatewayError, PersistenceError, ValidationError
from marketplace.orders import service as orders_service
from marketplace.orders.models import PendingOrderPayload
from . import metadata as meta
from . import paystack_client
from . import repository

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
REQUIRED_FIELDS = ("amount", "email", "reference", "orderData")


class VerificationResult(BaseModel):
    status: Literal["success", "failed"]
    message: str
    order_id: Optional[str] = None
    reference: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def callback_url_for(origin: Optional[str]) -> str:
    base = (origin or config.BASE_URL or "").rstrip("/")
    return f"{base}{config.PAYMENT_CALLBACK_PATH}"

def to_subunit(amount: Decimal) -> int:
    """Montant en unité principale -> entier en sous-unité (kobo)."""
    return int((Decimal(amount) * config.CURRENCY_SUBUNIT).to_integral_value())

def _validated_amount(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Invalid amount")
    if value <= 0 or value > config.PAYMENT_MAX_AMOUNT:
        raise ValidationError("Invalid amount")
    return value

# module marketplace.payments.service
async def initiate_payment(data: Dict[str, Any], origin: Optional[str] = None) -> Dict[str, Any]:
    """
    Ouvre une transaction chez la passerelle pour un checkout validé.
    Toute la validation précède l'appel réseau; la passerelle porte le payload jusqu'à la vérification.
    Retour: l'objet `data` de la passerelle {authorization_url, access_code, reference}.
    """
    data = data or {}
    if any(not data.get(field) for field in REQUIRED_FIELDS):
        raise ValidationError("Missing required fields")
    email = str(data["email"])
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    amount = _validated_amount(data["amount"])
    payload = data["orderData"]
    if not isinstance(payload, PendingOrderPayload):
        payload = meta.parse_order_data(payload)
    if amount != to_subunit(payload.total_amount):
        raise ValidationError("Invalid amount", details={"expected": to_subunit(payload.total_amount)})
    reference = str(data["reference"])

    try:
        ok, body = await paystack_client.initialize_transaction(
            amount=amount,
            email=email,
            reference=reference,
            callback_url=callback_url_for(origin),
            metadata=meta.make_transaction_metadata(payload),
        )
    except httpx.HTTPError as e:
        logger.warning("payments.initiate transport error reference=%s error=%s", reference, e)
        raise GatewayError("Payment initialization failed", details=str(e))
    if not ok:
        logger.warning("payments.initiate rejected reference=%s message=%s", reference, body.get("message"))
        raise GatewayError("Payment initialization failed", details=body.get("message") or "Gateway error")
    logger.info("payments.initiate ok reference=%s amount=%s customer_id=%s", reference, amount, payload.customer_id)
    return body.get("data") or {}

def _record_anomaly(anomaly: AnomalyError, customer_id: Optional[str], amount: Optional[int]) -> None:
    logger.error(
        "payments.verify ANOMALY paid without order reference=%s customer_id=%s amount=%s error=%s",
        anomaly.reference, customer_id, amount, anomaly.details,
    )
    row = repository.insert_reconciliation(
        reference=anomaly.reference,
        customer_id=customer_id,
        amount=amount,
        payload=anomaly.payload,
        error=str(anomaly.details or anomaly.message),
    )
    if row is None:
        logger.error("payments.verify reconciliation not recorded reference=%s", anomaly.reference)

def _clear_cart_after_payment(customer_id: str, reference: str) -> None:
    try:
        cart_repository.delete_cart_for_user(customer_id)
    except PersistenceError as e:
        logger.warning("payments.verify cart clear failed customer_id=%s reference=%s error=%s", customer_id, reference, e.details)

async def verify_payment(reference: Optional[str]) -> VerificationResult:
    """
    Confirme le statut final d'une référence et matérialise la commande payée.
    - Échec passerelle ou statut != success: failed, aucune écriture.
    - Rejeu d'une référence déjà matérialisée: success avec la même commande, panier intact.
    - Argent encaissé sans commande: anomalie enregistrée pour réconciliation, failed.
    """
    reference = (reference or "").strip()
    if not reference:
        raise ValidationError("Payment reference is required")

    try:
        ok, body = await paystack_client.verify_transaction(reference)
    except httpx.HTTPError as e:
        logger.warning("payments.verify transport error reference=%s error=%s", reference, e)
        return VerificationResult(status="failed", message="Payment verification failed", reference=reference)
    if not ok:
        return VerificationResult(
            status="failed",
            message=body.get("message") or "Payment verification failed",
            reference=reference,
        )

    transaction = body.get("data") or {}
    tx_status = str(transaction.get("status") or "unknown")
    if tx_status != "success":
        logger.info("payments.verify not successful reference=%s status=%s", reference, tx_status)
        return VerificationResult(status="failed", message=f"Payment {tx_status}", reference=reference)

    paid_amount = transaction.get("amount")
    raw_metadata = transaction.get("metadata")
    try:
        payload = meta.extract_order_data(transaction)
    except ValidationError as e:
        anomaly = AnomalyError("Failed to create order", reference=reference, payload={"metadata": raw_metadata}, details=e.details or e.message)
        _record_anomaly(anomaly, customer_id=None, amount=paid_amount)
        return VerificationResult(status="failed", message=anomaly.message, reference=reference)

    expected = to_subunit(payload.total_amount)
    if paid_amount is not None and paid_amount < expected:
        anomaly = AnomalyError(
            "Failed to create order",
            reference=reference,
            payload=payload.model_dump(mode="json"),
            details=f"Amount paid {paid_amount} below order total {expected}",
        )
        _record_anomaly(anomaly, customer_id=payload.customer_id, amount=paid_amount)
        return VerificationResult(status="failed", message=anomaly.message, reference=reference)
    if paid_amount is not None and paid_amount != expected:
        logger.warning("payments.verify amount mismatch reference=%s paid=%s expected=%s", reference, paid_amount, expected)

    try:
        order, created = orders_service.materialize_paid_order(payload, reference, config.PAYMENT_GATEWAY_NAME)
    except PersistenceError as e:
        anomaly = AnomalyError(
            "Failed to create order",
            reference=reference,
            payload=payload.model_dump(mode="json"),
            details=e.details or e.message,
        )
        _record_anomaly(anomaly, customer_id=payload.customer_id, amount=paid_amount)
        return VerificationResult(status="failed", message=anomaly.message, reference=reference)

    if created:
        _clear_cart_after_payment(payload.customer_id, reference)
    return VerificationResult(
        status="success",
        message="Payment verified and order created",
        order_id=order.id,
        reference=reference,
    )
