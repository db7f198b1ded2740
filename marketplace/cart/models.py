"""
Entités du panier: une ligne (propriétaire, produit, quantité >= 1), unique par (user_id, product_id).
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CartProduct(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    price: Decimal = Field(ge=0)
    vendor_id: Optional[str] = None
    vendor_name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_vendor(cls, data: Any) -> Any:
        # PostgREST renvoie la jointure sous la forme vendor: {id, business_name}
        if isinstance(data, dict) and isinstance(data.get("vendor"), dict):
            vendor = data["vendor"]
            data = dict(data)
            data.setdefault("vendor_id", vendor.get("id"))
            data.setdefault("vendor_name", vendor.get("business_name"))
        return data


class CartLine(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    user_id: str
    product_id: str
    quantity: int = Field(ge=1)
    product: Optional[CartProduct] = None

    @property
    def unit_price(self) -> Decimal:
        return self.product.price if self.product else Decimal("0")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def vendor_id(self) -> Optional[str]:
        return self.product.vendor_id if self.product else None

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        data["line_total"] = float(self.line_total)
        return data
