from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from typing import Optional

from storefront.database import get_session
from storefront.models.base import utcnow
from storefront.dependencies.admin import require_admin
from storefront.models.product import Product
from storefront.schemas.product_schemas import ProductCreate, ProductUpdate
from storefront.utils.pagination import paginate

router = APIRouter()


@router.get("")
def list_products(
    page: int = 1,
    limit: int = 12,
    search: Optional[str] = None,
    session: Session = Depends(get_session),
):
    query = select(Product).where(Product.is_active == True)  # noqa: E712

    if search:
        like = f"%{search}%"
        query = query.where(
            Product.name.ilike(like) | Product.description.ilike(like)
        )

    query = query.order_by(Product.created_at.desc(), Product.id.desc())

    return paginate(session=session, query=query, page=page, limit=limit)


@router.get("/{product_id}")
def get_product(product_id: int, session: Session = Depends(get_session)):
    product = session.get(Product, product_id)

    if not product or not product.is_active:
        raise HTTPException(404, "Product not found")

    return product


@router.post("", status_code=201)
def create_product(
    data: ProductCreate,
    session: Session = Depends(get_session),
    admin=Depends(require_admin),
):
    product = Product(**data.model_dump())

    session.add(product)
    session.commit()
    session.refresh(product)

    return product


@router.put("/{product_id}")
def update_product(
    product_id: int,
    data: ProductUpdate,
    session: Session = Depends(get_session),
    admin=Depends(require_admin),
):
    product = session.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(product, key, value)
    product.updated_at = utcnow()

    session.add(product)
    session.commit()
    session.refresh(product)

    return product
