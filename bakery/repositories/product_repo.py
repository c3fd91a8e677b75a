# bakery/repositories/product_repo.py
import uuid

from sqlalchemy import delete
from sqlmodel import Session, select

from bakery.database import storage_guard
from bakery.models.product import Product, ProductUnitOption


class ProductRepository:
    """
    Data access layer for Product & ProductUnitOption.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_by_slug(self, session: Session, slug: str) -> Product | None:
        stmt = select(Product).where(Product.slug == slug)
        return session.exec(stmt).first()

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
        category: str | None = None,
    ) -> list[Product]:
        stmt = select(Product)
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        if category:
            stmt = stmt.where(Product.category == category)
        stmt = stmt.order_by(Product.created_at.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def create(self, session: Session, product: Product) -> Product:
        with storage_guard(session, "create product"):
            session.add(product)
            session.commit()
            session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        with storage_guard(session, "update product"):
            session.add(product)
            session.commit()
            session.refresh(product)
        return product

    # ----- Unit options -----

    def list_options(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[ProductUnitOption]:
        stmt = (
            select(ProductUnitOption)
            .where(ProductUnitOption.product_id == product_id)
            .order_by(ProductUnitOption.position)
        )
        return list(session.exec(stmt).all())

    def replace_options(
        self,
        session: Session,
        product_id: uuid.UUID,
        options: list[ProductUnitOption],
    ) -> list[ProductUnitOption]:
        with storage_guard(session, "replace unit options"):
            session.exec(
                delete(ProductUnitOption).where(
                    ProductUnitOption.product_id == product_id
                )
            )
            session.add_all(options)
            session.commit()
            for option in options:
                session.refresh(option)
        return options
