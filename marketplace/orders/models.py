# module marketplace.orders.models
"""Entités typées des commandes.
- Les lignes brutes renvoyées par PostgREST sont validées ici avant d'entrer dans le coeur.
- PendingOrderPayload: commande non persistée, transportée dans les metadata de la passerelle.
- Order / OrderLineItem: entités persistées (append-only, seul le statut évolue hors de ce coeur).
"""
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"


class OrderStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


class PaymentMethod(str, Enum):
    paystack = "paystack"
    cod = "cod"


class PendingOrderItem(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0)

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity


class PendingOrderPayload(BaseModel):
    customer_id: str = Field(min_length=1)
    vendor_id: str = Field(min_length=1)
    total_amount: Decimal = Field(ge=0)
    payment_method: str = Field(min_length=1)
    payment_status: PaymentStatus = PaymentStatus.pending
    order_status: OrderStatus = OrderStatus.pending
    delivery_address: str = Field(min_length=1)
    delivery_phone: Optional[str] = None
    notes: Optional[str] = None
    items: List[PendingOrderItem] = Field(default_factory=list)

    def order_row(self, **overrides: Any) -> Dict[str, Any]:
        """Ligne 'orders' (sans les items), sérialisée JSON, avec surcharges éventuelles."""
        row = self.model_dump(mode="json", exclude={"items"})
        row["total_amount"] = float(self.total_amount)
        row.update(overrides)
        return row


class OrderLineItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    order_id: str
    product_id: str
    quantity: int = Field(ge=1)
    unit_price: Decimal
    total_price: Decimal
    created_at: Optional[str] = None


class Order(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    customer_id: str
    vendor_id: str
    total_amount: Decimal
    payment_method: str
    payment_status: str = PaymentStatus.pending.value
    order_status: str = OrderStatus.pending.value
    delivery_address: str
    delivery_phone: Optional[str] = None
    notes: Optional[str] = None
    payment_reference: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    items: List[OrderLineItem] = Field(default_factory=list)

    @field_validator("payment_status", "order_status", mode="before")
    @classmethod
    def _enum_value(cls, v: Any) -> Any:
        return v.value if isinstance(v, Enum) else v


def line_item_rows(order_id: str, items: List[PendingOrderItem]) -> List[Dict[str, Any]]:
    """Construit les lignes 'order_items' (prix unitaire figé au moment de l'achat)."""
    return [
        {
            "order_id": order_id,
            "product_id": it.product_id,
            "quantity": it.quantity,
            "unit_price": float(it.unit_price),
            "total_price": float(it.total_price),
        }
        for it in items
    ]
