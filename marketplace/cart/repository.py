"""
Accès aux données du panier (table shopping_cart, jointure products/vendors).
- Client RLS de l'acheteur si user_token est fourni, sinon service-role.
- Les mutations lèvent PersistenceError: l'appelant décide si l'échec est bloquant.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging

import marketplace.infra.supabase_client as supabase_client
from marketplace.errors import PersistenceError

logger = logging.getLogger(__name__)

CART_SELECT = (
    "id, user_id, product_id, quantity, "
    "product:products(id, name, price, vendor_id, vendor:vendors(id, business_name))"
)

# module marketplace.cart.repository
def fetch_cart_rows(user_id: str, user_token: Optional[str] = None) -> List[Dict[str, Any]]:
    """Lignes brutes du panier, produit joint. [] si user_id vide ou en cas d'erreur."""
    if not user_id:
        return []
    try:
        res = (
            supabase_client.client_for(user_token)
            .table("shopping_cart")
            .select(CART_SELECT)
            .eq("user_id", user_id)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("cart.repository.fetch_cart_rows failed user_id=%s", user_id)
        return []

def upsert_cart_line(user_id: str, product_id: str, quantity: int, user_token: Optional[str] = None) -> None:
    try:
        (
            supabase_client.client_for(user_token)
            .table("shopping_cart")
            .upsert(
                {"user_id": user_id, "product_id": product_id, "quantity": quantity},
                on_conflict="user_id,product_id",
            )
            .execute()
        )
    except Exception as e:
        logger.exception("cart.repository.upsert_cart_line failed user_id=%s product_id=%s", user_id, product_id)
        raise PersistenceError("Failed to update cart", details=str(e))

def update_cart_quantity(user_id: str, product_id: str, quantity: int, user_token: Optional[str] = None) -> None:
    try:
        (
            supabase_client.client_for(user_token)
            .table("shopping_cart")
            .update({"quantity": quantity})
            .eq("user_id", user_id)
            .eq("product_id", product_id)
            .execute()
        )
    except Exception as e:
        logger.exception("cart.repository.update_cart_quantity failed user_id=%s product_id=%s", user_id, product_id)
        raise PersistenceError("Failed to update cart", details=str(e))

def delete_cart_line(user_id: str, product_id: str, user_token: Optional[str] = None) -> None:
    """Suppression par (propriétaire, produit)."""
    try:
        (
            supabase_client.client_for(user_token)
            .table("shopping_cart")
            .delete()
            .eq("user_id", user_id)
            .eq("product_id", product_id)
            .execute()
        )
    except Exception as e:
        logger.exception("cart.repository.delete_cart_line failed user_id=%s product_id=%s", user_id, product_id)
        raise PersistenceError("Failed to remove cart item", details=str(e))

def delete_cart_lines(user_id: str, product_ids: Iterable[str], user_token: Optional[str] = None) -> None:
    for product_id in product_ids:
        delete_cart_line(user_id, product_id, user_token=user_token)

def delete_cart_for_user(user_id: str, user_token: Optional[str] = None) -> None:
    if not user_id:
        raise PersistenceError("Failed to clear cart", details="user_id manquant")
    try:
        (
            supabase_client.client_for(user_token)
            .table("shopping_cart")
            .delete()
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        logger.exception("cart.repository.delete_cart_for_user failed user_id=%s", user_id)
        raise PersistenceError("Failed to clear cart", details=str(e))
