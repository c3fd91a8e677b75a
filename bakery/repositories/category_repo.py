# bakery/repositories/category_repo.py
import uuid

from sqlalchemy import func, update
from sqlmodel import Session, select

from bakery.database import storage_guard
from bakery.models.category import Category
from bakery.models.product import Product


class CategoryRepository:
    def get_by_id(self, session: Session, category_id: uuid.UUID) -> Category | None:
        return session.get(Category, category_id)

    def get_by_name(self, session: Session, name: str) -> Category | None:
        """Case-insensitive name lookup."""
        stmt = select(Category).where(func.lower(Category.name) == name.strip().lower())
        return session.exec(stmt).first()

    def list_all(self, session: Session) -> list[Category]:
        stmt = select(Category).order_by(Category.created_at.desc())
        return list(session.exec(stmt).all())

    def count_active_products(self, session: Session, name: str) -> int:
        stmt = (
            select(func.count())
            .select_from(Product)
            .where(Product.category == name, Product.is_active == True)  # noqa: E712
        )
        return int(session.exec(stmt).one() or 0)

    def create(self, session: Session, category: Category) -> Category:
        with storage_guard(session, "create category"):
            session.add(category)
            session.commit()
            session.refresh(category)
        return category

    def update(
        self,
        session: Session,
        category: Category,
        renamed_from: str | None = None,
    ) -> Category:
        """
        Save the category; with `renamed_from`, products filed under the
        old name move to the new one in the same transaction.
        """
        with storage_guard(session, "update category"):
            session.add(category)
            if renamed_from is not None:
                session.exec(
                    update(Product)
                    .where(Product.category == renamed_from)
                    .values(category=category.name)
                    .execution_options(synchronize_session=False)
                )
            session.commit()
            session.refresh(category)
        return category

    def delete(self, session: Session, category: Category) -> None:
        with storage_guard(session, "delete category"):
            session.delete(category)
            session.commit()
