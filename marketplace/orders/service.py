"""Couche service des Commandes.
Rôles:
- Matérialiser une commande payée à partir du payload renvoyé par la passerelle
  (garde d'idempotence sur payment_reference, compensation si les items échouent).
- Créer une commande « paiement à la livraison » (COD) sans aller-retour passerelle.
- Lister / lire les commandes d'un acheteur.
"""
from typing import Any, Dict, List, Optional, Tuple
import logging

from marketplace.errors import PersistenceError
from marketplace.orders import repository
from marketplace.orders.models import (
    Order,
    OrderLineItem,
    PaymentMethod,
    PaymentStatus,
    PendingOrderPayload,
    line_item_rows,
)

logger = logging.getLogger(__name__)


def _persist(row: Dict[str, Any], payload: PendingOrderPayload, user_token: Optional[str] = None) -> Order:
    """
    Insère la commande puis ses lignes.
    Si les lignes échouent, la commande est supprimée (pas d'état partiel) et l'erreur propagée.
    """
    created = repository.insert_order(row, user_token=user_token)
    order_id = str(created["id"])
    try:
        item_rows = repository.insert_order_items(line_item_rows(order_id, payload.items), user_token=user_token)
    except PersistenceError:
        if not repository.delete_order(order_id):
            logger.error("orders.service compensation failed order_id=%s", order_id)
        raise
    order = Order.model_validate(created)
    order.items = [OrderLineItem.model_validate(r) for r in item_rows if isinstance(r, dict)]
    return order

def materialize_paid_order(payload: PendingOrderPayload, reference: str, gateway_name: str) -> Tuple[Order, bool]:
    """
    Seul écrivain des commandes payées en ligne.
    - Si une commande porte déjà cette référence: la retourne (rejeu), rien n'est créé.
    - Sinon: payload + payment_status=paid + payment_method=<passerelle> + payment_reference.
    - Une violation d'unicité concurrente est résolue vers la commande existante.
    Retour: (order, created) où created=False signale un rejeu.
    """
    existing = repository.get_order_by_reference(reference)
    if existing:
        logger.info("orders.service.materialize_paid_order replay reference=%s order_id=%s", reference, existing.get("id"))
        return Order.model_validate(existing), False

    row = payload.order_row(
        payment_status=PaymentStatus.paid.value,
        payment_method=gateway_name,
        payment_reference=reference,
    )
    try:
        order = _persist(row, payload)
    except repository.DuplicateReferenceError:
        existing = repository.get_order_by_reference(reference)
        if not existing:
            raise
        logger.info("orders.service.materialize_paid_order concurrent replay reference=%s", reference)
        return Order.model_validate(existing), False
    logger.info("orders.service.materialize_paid_order created order_id=%s reference=%s", order.id, reference)
    return order, True

def create_cod_order(payload: PendingOrderPayload, user_token: Optional[str] = None) -> Order:
    """Commande COD: payment_status=pending, payment_method=cod, persistée directement."""
    row = payload.order_row(
        payment_status=PaymentStatus.pending.value,
        payment_method=PaymentMethod.cod.value,
    )
    order = _persist(row, payload, user_token=user_token)
    logger.info("orders.service.create_cod_order created order_id=%s customer_id=%s", order.id, payload.customer_id)
    return order

def list_orders_for_customer(customer_id: str) -> List[Order]:
    orders: List[Order] = []
    for row in repository.list_customer_orders(customer_id):
        try:
            orders.append(Order.model_validate(row))
        except ValueError:
            logger.warning("orders.service skip malformed order row id=%s", (row or {}).get("id"))
    return orders

def get_order_for_customer(order_id: str, customer_id: str) -> Optional[Order]:
    """Commande avec ses lignes, uniquement si elle appartient à l'acheteur."""
    row = repository.get_order(order_id)
    if not row or str(row.get("customer_id")) != str(customer_id):
        return None
    order = Order.model_validate(row)
    order.items = [OrderLineItem.model_validate(r) for r in repository.list_order_items(order_id)]
    return order
