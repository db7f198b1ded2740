"""
Accès aux données pour la feature 'orders' (tables orders, order_items).
- Lectures tolérantes: [] / None en cas d'erreur (loggée).
- Écritures du flux de commande: lèvent PersistenceError; un doublon sur
  payment_reference (23505) est signalé par DuplicateReferenceError.
"""
from typing import Any, Dict, List, Optional
import logging

from postgrest.exceptions import APIError

import marketplace.infra.supabase_client as supabase_client
from marketplace.errors import PersistenceError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class DuplicateReferenceError(PersistenceError):
    """Une commande existe déjà pour cette référence de paiement."""


def _api_error_code(e: APIError) -> Optional[str]:
    code = getattr(e, "code", None)
    if code:
        return str(code)
    if e.args and isinstance(e.args[0], dict):
        return e.args[0].get("code")
    return None

def _first_row(res) -> Optional[Dict[str, Any]]:
    rows = getattr(res, "data", None) or []
    if isinstance(rows, list):
        return rows[0] if rows else None
    if isinstance(rows, dict):
        return rows
    return None

# module marketplace.orders.repository
def insert_order(row: Dict[str, Any], user_token: Optional[str] = None) -> Dict[str, Any]:
    """
    Insère une ligne 'orders' et retourne la ligne créée (id inclus).
    - user_token: client RLS de l'acheteur (COD); sinon service-role (vérification paiement).
    """
    try:
        res = supabase_client.client_for(user_token).table("orders").insert(row).execute()
    except APIError as e:
        if _api_error_code(e) == UNIQUE_VIOLATION:
            raise DuplicateReferenceError("Order already exists for reference", details=row.get("payment_reference"))
        logger.exception("orders.repository.insert_order failed customer_id=%s", row.get("customer_id"))
        raise PersistenceError("Failed to create order", details=str(e))
    except Exception as e:
        logger.exception("orders.repository.insert_order failed customer_id=%s", row.get("customer_id"))
        raise PersistenceError("Failed to create order", details=str(e))

    created = _first_row(res)
    if not created or not created.get("id"):
        raise PersistenceError("Failed to create order", details="no row returned")
    return created

def insert_order_items(rows: List[Dict[str, Any]], user_token: Optional[str] = None) -> List[Dict[str, Any]]:
    if not rows:
        return []
    try:
        res = supabase_client.client_for(user_token).table("order_items").insert(rows).execute()
        return res.data or []
    except Exception as e:
        logger.exception("orders.repository.insert_order_items failed order_id=%s", rows[0].get("order_id"))
        raise PersistenceError("Failed to create order items", details=str(e))

def delete_order(order_id: str) -> bool:
    """Compensation: supprime une commande incomplète (service-role). Retourne False si échec."""
    try:
        supabase_client.get_service_supabase().table("orders").delete().eq("id", order_id).execute()
        return True
    except Exception:
        logger.exception("orders.repository.delete_order failed id=%s", order_id)
        return False

def get_order_by_reference(reference: str) -> Optional[Dict[str, Any]]:
    """
    Commande déjà matérialisée pour une référence de paiement (garde d'idempotence).
    Propage l'erreur: une lecture ratée ne doit pas être confondue avec 'absente'.
    """
    if not reference:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("*")
            .eq("payment_reference", reference)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.exception("orders.repository.get_order_by_reference failed reference=%s", reference)
        raise PersistenceError("Failed to look up order", details=str(e))
    return _first_row(res)

def get_order(order_id: str) -> Optional[Dict[str, Any]]:
    if not order_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("*")
            .eq("id", order_id)
            .limit(1)
            .execute()
        )
        return _first_row(res)
    except Exception:
        logger.exception("orders.repository.get_order failed id=%s", order_id)
        return None

def list_customer_orders(customer_id: str, limit: int = 50) -> List[Dict[str, Any]]:
    """Commandes d'un acheteur, plus récentes d'abord."""
    if not customer_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("*")
            .eq("customer_id", customer_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_customer_orders failed customer_id=%s", customer_id)
        return []

def list_order_items(order_id: str) -> List[Dict[str, Any]]:
    if not order_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("order_items")
            .select("*")
            .eq("order_id", order_id)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_order_items failed order_id=%s", order_id)
        return []
