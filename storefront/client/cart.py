from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator, List, Optional

from storefront.schemas.checkout_schemas import OrderLine
from storefront.services.pricing import (
    OrderTotals,
    PricingRules,
    calculate_order_totals,
    round_money,
    to_decimal,
)


@dataclass
class CartItem:
    product_id: int
    name: str
    price: Decimal
    quantity: int = 1
    size: Optional[str] = None

    def __post_init__(self):
        self.price = to_decimal(self.price)
        if self.price < 0:
            raise ValueError("price must not be negative")
        if self.price != round_money(self.price):
            raise ValueError("price must be in whole cents")
        if self.quantity < 1:
            raise ValueError("quantity must be at least 1")


class Cart:
    """In-memory cart of one shopping session.

    Lines are keyed by product and size, so the same shirt in two sizes is two
    lines while adding the same size twice just bumps the quantity.
    """

    def __init__(self, items: Optional[List[CartItem]] = None):
        self._items: List[CartItem] = []
        for item in items or []:
            self.add(item)

    def __iter__(self) -> Iterator[CartItem]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def _find(self, product_id: int, size: Optional[str]) -> Optional[CartItem]:
        for item in self._items:
            if item.product_id == product_id and item.size == size:
                return item
        return None

    def add(self, item: CartItem) -> CartItem:
        existing = self._find(item.product_id, item.size)
        if existing:
            existing.quantity += item.quantity
            return existing
        self._items.append(item)
        return item

    def update_quantity(self, product_id: int, quantity: int, size: Optional[str] = None):
        item = self._find(product_id, size)
        if item is None:
            raise KeyError(product_id)
        if quantity <= 0:
            self._items.remove(item)
        else:
            item.quantity = quantity

    def remove(self, product_id: int, size: Optional[str] = None):
        item = self._find(product_id, size)
        if item is not None:
            self._items.remove(item)

    def clear(self):
        self._items.clear()

    def totals(self, rules: PricingRules = PricingRules()) -> OrderTotals:
        return calculate_order_totals(self._items, rules)

    def to_order_lines(self) -> List[OrderLine]:
        return [
            OrderLine(
                product_id=item.product_id,
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                size=item.size,
            )
            for item in self._items
        ]
