# module marketplace.orders.views

"""Endpoints Commandes (lecture acheteur).
- GET /api/v1/orders: commandes de l'utilisateur connecté, plus récentes d'abord.
- GET /api/v1/orders/{order_id}: détail avec lignes; 404 si absente ou d'un autre acheteur.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from marketplace.utils.security import require_user
from marketplace.orders import service as orders_service

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


@router.get("")
def list_my_orders(user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    orders = orders_service.list_orders_for_customer(user.get("id", ""))
    return {"orders": [o.model_dump(mode="json") for o in orders]}


@router.get("/{order_id}")
def get_my_order(order_id: str, user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    order = orders_service.get_order_for_customer(order_id, user.get("id", ""))
    if not order:
        raise HTTPException(status_code=404, detail="Commande introuvable")
    return order.model_dump(mode="json")
