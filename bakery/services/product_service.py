# bakery/services/product_service.py
import re
import uuid

from sqlmodel import Session

from bakery.core.errors import BakeryError, ProductNotFound
from bakery.models.product import Product, ProductUnitOption
from bakery.repositories.product_repo import ProductRepository
from bakery.schemas.product import (
    ProductCreate,
    ProductRead,
    ProductUpdate,
    UnitOptionIn,
    UnitOptionRead,
)


class ProductService:
    """
    Business logic for Product & ProductUnitOption.

    Responsibilities:
      - slug generation & uniqueness
      - keeping a product's unit options in one ordered list
      - admin-only operations (enforced at router via require_admin)
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Helpers -----

    @staticmethod
    def _slugify(raw: str) -> str:
        """
        Basic slugification:
          - lowercase
          - non-alphanumeric -> '-'
          - collapse multiple '-'
          - strip leading/trailing '-'
        """
        value = raw.strip().lower()
        value = re.sub(r"[^a-z0-9]+", "-", value)
        value = re.sub(r"-+", "-", value)
        value = value.strip("-")
        return value or "product"

    def _ensure_unique_slug(self, session: Session, base_slug: str) -> str:
        """
        Ensure slug is unique by appending -2, -3, ... if needed.
        """
        slug = base_slug
        i = 2
        while self.repo.get_by_slug(session, slug) is not None:
            slug = f"{base_slug}-{i}"
            i += 1
        return slug

    def _to_read(self, session: Session, product: Product) -> ProductRead:
        options = self.repo.list_options(session, product.id)
        return ProductRead(
            **ProductRead.model_validate(product, from_attributes=True).model_dump(
                exclude={"unit_options"}
            ),
            unit_options=[
                UnitOptionRead.model_validate(o, from_attributes=True) for o in options
            ],
        )

    def _get(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise ProductNotFound()
        return product

    # ----- Products -----

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
        category: str | None = None,
    ) -> list[ProductRead]:
        products = self.repo.list_products(
            session, skip=skip, limit=limit, only_active=only_active, category=category
        )
        return [self._to_read(session, p) for p in products]

    def get_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        include_inactive: bool = False,
    ) -> ProductRead:
        product = self._get(session, product_id)
        if not product.is_active and not include_inactive:
            raise ProductNotFound()
        return self._to_read(session, product)

    def create_product(
        self,
        session: Session,
        payload: ProductCreate,
    ) -> ProductRead:
        """
        Create a new product with a unique slug and its unit options.

        - If slug is provided => slugify & ensure unique.
        - Else => slugify from name & ensure unique.
        """
        raw_slug = payload.slug or payload.name
        slug = self._ensure_unique_slug(session, self._slugify(raw_slug))

        product = self.repo.create(
            session,
            Product(
                name=payload.name,
                slug=slug,
                category=payload.category,
                unit=payload.unit,
                price_per_pc=payload.price_per_pc,
                price_per_100g=payload.price_per_100g,
                description=payload.description,
                is_active=payload.is_active,
            ),
        )
        if payload.unit_options:
            self.replace_options(session, product.id, payload.unit_options)
        return self._to_read(session, product)

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> ProductRead:
        """
        Partial update of a product.

        - If slug is changed, enforce uniqueness.
        - Price changes do not touch existing cart lines (they keep their
          price snapshot).
        """
        product = self._get(session, product_id)
        changes = payload.model_dump(exclude_unset=True)

        new_slug = changes.pop("slug", None)
        if new_slug is not None:
            new_base_slug = self._slugify(new_slug)
            if new_base_slug != product.slug:
                product.slug = self._ensure_unique_slug(session, new_base_slug)

        for field, value in changes.items():
            if field == "name" and value is None:
                continue
            setattr(product, field, value)

        return self._to_read(session, self.repo.update(session, product))

    def delete_product(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> None:
        """
        Retire a product. The row and its options stay and cart lines keep
        their snapshot, but the product is no longer listed or sold.
        """
        product = self._get(session, product_id)
        if product.is_active:
            product.is_active = False
            self.repo.update(session, product)

    # ----- Unit options -----

    def replace_options(
        self,
        session: Session,
        product_id: uuid.UUID,
        options: list[UnitOptionIn],
    ) -> list[ProductUnitOption]:
        """
        Replace the whole option list of a product. Labels must be unique
        within the product, they are what cart lines refer to.
        """
        self._get(session, product_id)
        labels = [o.label for o in options]
        if len(labels) != len(set(labels)):
            raise BakeryError("Duplicate unit option label")

        rows = [
            ProductUnitOption(
                product_id=product_id,
                label=o.label,
                grams=o.grams,
                price=o.price,
                position=o.position if o.position else idx,
            )
            for idx, o in enumerate(options)
        ]
        return self.repo.replace_options(session, product_id, rows)
