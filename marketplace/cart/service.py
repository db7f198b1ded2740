"""
Agrégat Panier: service explicite lié à une identité injectée.
Les consommateurs tiennent une référence vers CartService plutôt qu'un état global.
"""
from decimal import Decimal
from types import ModuleType
from typing import Iterable, List, Optional, Set
import logging

from pydantic import ValidationError as PydanticValidationError

from marketplace.cart import repository as cart_repository
from marketplace.cart.models import CartLine
from marketplace.errors import ValidationError

logger = logging.getLogger(__name__)

# module marketplace.cart.service
def cart_total(lines: Iterable[CartLine]) -> Decimal:
    """Σ(quantité × prix) sur les lignes fournies."""
    return sum((line.line_total for line in lines), Decimal("0"))

def cart_item_count(lines: Iterable[CartLine]) -> int:
    return sum(line.quantity for line in lines)


class CartService:
    def __init__(self, user_id: Optional[str], repository: ModuleType = cart_repository, user_token: Optional[str] = None):
        self.user_id = (user_id or "").strip()
        self.repository = repository
        self.user_token = user_token

    def _require_identity(self) -> None:
        if not self.user_id:
            raise ValidationError("Not signed in")

    @staticmethod
    def _require_quantity(quantity: int) -> int:
        try:
            qty = int(quantity)
        except (TypeError, ValueError):
            raise ValidationError("Invalid quantity")
        if qty < 1:
            raise ValidationError("Quantity must be at least 1")
        return qty

    def lines(self) -> List[CartLine]:
        """
        Lignes du panier validées à la frontière.
        - Les lignes brutes malformées sont ignorées (warning), le coeur ne voit que des CartLine.
        """
        if not self.user_id:
            return []
        lines: List[CartLine] = []
        for row in self.repository.fetch_cart_rows(self.user_id, user_token=self.user_token):
            try:
                lines.append(CartLine.model_validate(row))
            except PydanticValidationError:
                logger.warning("cart.service skip malformed cart row user_id=%s row=%s", self.user_id, row)
        return lines

    def add(self, product_id: str, quantity: int = 1) -> None:
        self._require_identity()
        qty = self._require_quantity(quantity)
        if not product_id:
            raise ValidationError("product_id is required")
        self.repository.upsert_cart_line(self.user_id, product_id, qty, user_token=self.user_token)

    def update_quantity(self, product_id: str, quantity: int) -> None:
        self._require_identity()
        qty = self._require_quantity(quantity)
        self.repository.update_cart_quantity(self.user_id, product_id, qty, user_token=self.user_token)

    def remove(self, product_id: str) -> None:
        self._require_identity()
        self.repository.delete_cart_line(self.user_id, product_id, user_token=self.user_token)

    def remove_products(self, product_ids: Iterable[str]) -> None:
        self._require_identity()
        self.repository.delete_cart_lines(self.user_id, list(product_ids), user_token=self.user_token)

    def clear(self) -> None:
        self._require_identity()
        self.repository.delete_cart_for_user(self.user_id, user_token=self.user_token)

    def total(self, lines: Optional[List[CartLine]] = None) -> Decimal:
        return cart_total(self.lines() if lines is None else lines)

    def item_count(self, lines: Optional[List[CartLine]] = None) -> int:
        return cart_item_count(self.lines() if lines is None else lines)

    @staticmethod
    def vendor_ids(lines: Iterable[CartLine]) -> Set[str]:
        return {line.vendor_id for line in lines if line.vendor_id}
