import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from fastapi import HTTPException
from sqlmodel import Session, select

from storefront.models.order_item import OrderItem
from storefront.models.product import Product
from storefront.schemas.checkout_schemas import OrderLine

logger = logging.getLogger(__name__)


@dataclass
class PricedItem:
    product_id: int
    product_name: str
    price: Decimal
    quantity: int
    size: Optional[str] = None


def resolve_lines(session: Session, lines: Iterable[OrderLine]) -> List[PricedItem]:
    """Match cart lines to the catalogue; prices always come from the product row."""
    priced = []
    requested = defaultdict(int)

    for line in lines:
        product = session.get(Product, line.product_id)

        if not product or not product.is_active:
            raise HTTPException(400, f"Product {line.product_id} is not available")

        requested[product.id] += line.quantity
        if product.stock < requested[product.id]:
            raise HTTPException(
                400,
                f"Not enough stock for {product.name}. Available: {product.stock}, Requested: {requested[product.id]}"
            )

        if line.price != product.price:
            logger.info(
                f"Price for product {product.id} changed since it was added to the cart: "
                f"{line.price} -> {product.price}"
            )

        priced.append(PricedItem(
            product_id=product.id,
            product_name=product.name,
            price=product.price,
            quantity=line.quantity,
            size=line.size,
        ))

    return priced


def reduce_inventory(session: Session, items: Iterable[PricedItem]):
    """Decrement stock inside the caller's transaction."""
    for item in items:
        product = session.get(Product, item.product_id)
        if product.stock < item.quantity:
            raise HTTPException(400, f"Not enough stock for {product.name}")
        product.stock -= item.quantity
        session.add(product)
        logger.info(f"Stock for product {product.id} reduced to {product.stock}")


def restock_order_items(session: Session, order_id: int) -> int:
    """Give stock back when an order is cancelled; caller commits."""
    order_items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order_id)
    ).all()

    for item in order_items:
        product = session.get(Product, item.product_id)
        if product:
            product.stock += item.quantity
            session.add(product)

    logger.info(f"Restocked {len(order_items)} items for order {order_id}")
    return len(order_items)
