# bakery/services/category_service.py
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from bakery.core.errors import CategoryInUse, CategoryNameTaken, CategoryNotFound
from bakery.models.category import Category
from bakery.repositories.category_repo import CategoryRepository
from bakery.schemas.category import CategoryCreate, CategoryUpdate


class CategoryService:
    """
    Catalog categories.

    Names are unique (case-insensitive). Products carry the category name,
    so a rename is applied to them as well, and a category cannot be
    deleted while active products are filed under it.
    """

    def __init__(self, repo: CategoryRepository):
        self.repo = repo

    def list_categories(self, session: Session) -> list[Category]:
        return self.repo.list_all(session)

    def get_category(self, session: Session, category_id: uuid.UUID) -> Category:
        category = self.repo.get_by_id(session, category_id)
        if not category:
            raise CategoryNotFound()
        return category

    def create_category(self, session: Session, payload: CategoryCreate) -> Category:
        if self.repo.get_by_name(session, payload.name) is not None:
            raise CategoryNameTaken()
        return self.repo.create(session, Category(**payload.model_dump()))

    def update_category(
        self,
        session: Session,
        category_id: uuid.UUID,
        payload: CategoryUpdate,
    ) -> Category:
        category = self.get_category(session, category_id)
        changes = payload.model_dump(exclude_unset=True)

        renamed_from = None
        new_name = changes.pop("name", None)
        if new_name is not None and new_name != category.name:
            conflict = self.repo.get_by_name(session, new_name)
            if conflict is not None and conflict.id != category.id:
                raise CategoryNameTaken()
            renamed_from = category.name
            category.name = new_name

        if "description" in changes:
            category.description = changes["description"]
        category.updated_at = datetime.now(timezone.utc)

        return self.repo.update(session, category, renamed_from=renamed_from)

    def delete_category(self, session: Session, category_id: uuid.UUID) -> None:
        category = self.get_category(session, category_id)
        if self.repo.count_active_products(session, category.name):
            raise CategoryInUse()
        self.repo.delete(session, category)
