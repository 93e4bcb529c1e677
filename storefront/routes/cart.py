from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.models.base import utcnow
from storefront.models.cart import CartItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.cart_schemas import CartAddRequest, CartUpdateRequest
from storefront.services.inventory_service import PricedItem
from storefront.services.order_service import pricing_rules_for
from storefront.services.pricing import calculate_order_totals, line_total
from storefront.utils.token import get_current_user


router = APIRouter()


def clear_cart(session: Session, user_id: int):
    items = session.exec(
        select(CartItem).where(CartItem.user_id == user_id)
    ).all()

    for item in items:
        session.delete(item)

    session.commit()


def _owned_item(session: Session, item_id: int, user_id: int) -> CartItem:
    item = session.get(CartItem, item_id)

    if not item or item.user_id != user_id:
        raise HTTPException(404, "Cart item not found")

    return item


# View Cart

@router.get("")
def get_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    rows = session.exec(
        select(CartItem, Product)
        .join(Product, CartItem.product_id == Product.id)
        .where(CartItem.user_id == current_user.id)
        .order_by(CartItem.created_at, CartItem.id)
    ).all()

    items_response = []

    for cart_item, product in rows:
        items_response.append({
            "item_id": cart_item.id,
            "product_id": product.id,
            "name": product.name,
            "image_url": product.image_url,
            "price": product.price,
            "quantity": cart_item.quantity,
            "size": cart_item.size,
            "stock": product.stock,
            "in_stock": product.in_stock,
            "total": line_total(product.price, cart_item.quantity)
        })

    totals = calculate_order_totals(
        [PricedItem(product.id, product.name, product.price, cart_item.quantity) for cart_item, product in rows],
        pricing_rules_for("user"),
    )

    return {
        "items": items_response,
        "summary": totals.as_dict()
    }


# Add to Cart

@router.post("/items", status_code=201)
def add_to_cart(
    data: CartAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    product = session.get(Product, data.product_id)
    if not product or not product.is_active:
        raise HTTPException(status_code=404, detail="Product not found")

    existing_item = session.exec(
        select(CartItem).where(
            CartItem.user_id == current_user.id,
            CartItem.product_id == data.product_id,
            CartItem.size == data.size
        )
    ).first()

    if existing_item:
        existing_item.quantity += data.quantity
        session.add(existing_item)
        session.commit()
        session.refresh(existing_item)
        return {"message": "Cart updated", "item": existing_item}

    new_item = CartItem(
        user_id=current_user.id,
        product_id=product.id,
        size=data.size,
        quantity=data.quantity,
        created_at=utcnow()
    )

    session.add(new_item)
    session.commit()
    session.refresh(new_item)

    return {"message": "Added to cart", "item": new_item}


# Update Cart

@router.put("/items/{item_id}")
def update_cart_item(
    item_id: int,
    data: CartUpdateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = _owned_item(session, item_id, current_user.id)

    if data.quantity <= 0:
        session.delete(item)
        session.commit()
        return {"message": "Item removed"}

    item.quantity = data.quantity
    session.add(item)
    session.commit()
    session.refresh(item)

    return {"message": "Quantity updated", "item": item}


# Remove Cart

@router.delete("/items/{item_id}")
def remove_item(
    item_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = _owned_item(session, item_id, current_user.id)

    session.delete(item)
    session.commit()

    return {"message": "Item removed from cart"}


# Clear Cart

@router.delete("")
def clear_cart_endpoint(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    clear_cart(session, current_user.id)
    return {"message": "Cart cleared"}
