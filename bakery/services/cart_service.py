# bakery/services/cart_service.py
import logging
import uuid

from sqlmodel import Session
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from bakery.core.errors import (
    CartConflict,
    GiftLineLocked,
    InvalidCoupon,
    ItemNotFound,
    StorageError,
)
from bakery.database import storage_guard
from bakery.models.cart import Cart, CartItem
from bakery.models.coupon import Coupon
from bakery.repositories.cart_repo import CartRepository
from bakery.repositories.coupon_repo import CouponRepository
from bakery.repositories.product_repo import ProductRepository
from bakery.schemas.cart import (
    CartItemCreate,
    CartItemRead,
    CartItemUpdate,
    CartRead,
)
from bakery.services.cart_identity import CartResolver
from bakery.services.coupon_engine import evaluate, normalize_code
from bakery.services.gift_lines import plan_gift_lines
from bakery.services.pricing import (
    UNIT_VARIANT,
    LineSelection,
    cart_subtotal,
    line_total,
    price_line,
    round_money,
)

logger = logging.getLogger(__name__)

DERIVED_FIELDS = (
    "subtotal",
    "discount_total",
    "grand_total",
    "coupon_code",
    "coupon_discount",
    "auto_coupon_code",
    "auto_discount",
    "free_gift_applied",
)


class StaleCartVersion(Exception):
    """Another request wrote the cart's derived fields first."""


class CartService:
    """
    Business logic for cart operations.

    Every mutating operation ends with recalculate(), the only code path
    that writes a cart's derived fields:

      1. reload the cart and its lines
      2. subtotal from stored unit prices (paid lines only)
      3. evaluate manual + automatic coupons
      4. plan gift-line inserts/updates/deletes
      5. discount_total and grand_total = max(0, subtotal - discount)
      6. write lines + totals in one transaction, guarded by cart.version
      7. return the canonical cart view

    Nothing is written when the cart already matches. A lost version race
    re-runs the whole sequence from a fresh read.
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        coupon_repo: CouponRepository,
        *,
        currency: str = "INR",
        stacking: bool = True,
        max_attempts: int = 3,
    ):
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.coupon_repo = coupon_repo
        self.resolver = CartResolver(cart_repo, currency=currency)
        self.stacking = stacking
        self.max_attempts = max(1, max_attempts)

    # ---- identity ----

    def resolve_cart(
        self,
        session: Session,
        cart_token: uuid.UUID | None,
        user_id: uuid.UUID | None,
    ) -> Cart:
        resolved = self.resolver.resolve(session, cart_token, user_id)
        if resolved.merged_from is not None:
            # the emptied guest cart keeps consistent (zero) totals
            self.recalculate(session, resolved.merged_from)
        return resolved.cart

    # ---- recalculation ----

    def recalculate(self, session: Session, cart_id: uuid.UUID) -> CartRead:
        retrying = Retrying(
            retry=retry_if_exception_type(StaleCartVersion),
            stop=stop_after_attempt(self.max_attempts),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    return self._recalculate_once(session, cart_id)
        except StaleCartVersion as exc:
            logger.warning("Cart %s: recalculation kept losing version race", cart_id)
            raise CartConflict() from exc

    def _recalculate_once(self, session: Session, cart_id: uuid.UUID) -> CartRead:
        cart = self.cart_repo.get_cart(session, cart_id)
        if cart is None:
            raise StorageError("Cart not found")
        items = self.cart_repo.list_items(session, cart_id)

        subtotal = cart_subtotal(items)
        catalog = self.coupon_repo.list_active(session)
        evaluation = evaluate(subtotal, cart.coupon_code, catalog, stacking=self.stacking)

        if cart.coupon_code and evaluation.manual is None:
            logger.info("Cart %s: coupon %s rejected", cart_id, cart.coupon_code)

        gift = evaluation.gift
        gift_lines = [it for it in items if it.is_gift]
        gift_name = None
        if gift is not None and not any(g.product_id == gift.product_id for g in gift_lines):
            product = self.product_repo.get_by_id(session, gift.product_id)
            gift_name = product.name if product else None
        plan = plan_gift_lines(cart.id, gift_lines, gift, product_name=gift_name)

        discount_total = evaluation.discount_total
        values = {
            "subtotal": subtotal,
            "discount_total": discount_total,
            "grand_total": round_money(max(0.0, subtotal - discount_total)),
            "coupon_code": evaluation.manual.code if evaluation.manual else None,
            "coupon_discount": evaluation.coupon_discount,
            "auto_coupon_code": evaluation.auto.code if evaluation.auto else None,
            "auto_discount": evaluation.auto_discount,
            "free_gift_applied": gift is not None,
        }

        if plan.is_empty and all(getattr(cart, k) == v for k, v in values.items()):
            return self._to_read(cart, items)

        expected_version = cart.version
        with storage_guard(session, "recalculate cart"):
            for item in plan.delete:
                self.cart_repo.stage_delete(session, item)
            for item, quantity in plan.update:
                self.cart_repo.stage_quantity(session, item, quantity)
            for item in plan.insert:
                self.cart_repo.stage_insert(session, item)

            if not self.cart_repo.stage_totals(session, cart_id, expected_version, values):
                session.rollback()
                logger.info("Cart %s: version %s is stale, retrying", cart_id, expected_version)
                raise StaleCartVersion(cart_id)
            session.commit()

        return self._to_read(
            self.cart_repo.get_cart(session, cart_id),
            self.cart_repo.list_items(session, cart_id),
        )

    @staticmethod
    def _to_read(cart: Cart, items: list[CartItem]) -> CartRead:
        return CartRead(
            id=cart.id,
            user_id=cart.user_id,
            status=cart.status,
            currency=cart.currency,
            subtotal=cart.subtotal,
            discount_total=cart.discount_total,
            grand_total=cart.grand_total,
            coupon_code=cart.coupon_code,
            coupon_discount=cart.coupon_discount,
            auto_coupon_code=cart.auto_coupon_code,
            auto_discount=cart.auto_discount,
            free_gift_applied=cart.free_gift_applied,
            items=[
                CartItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    product_name=it.product_name,
                    unit=it.unit,
                    quantity=it.quantity,
                    grams=it.grams,
                    variant_label=it.variant_label,
                    unit_price=it.unit_price,
                    line_total=line_total(it),
                    is_gift=it.is_gift,
                )
                for it in items
            ],
        )

    # ---- line operations ----

    def _price(self, session: Session, product_id: uuid.UUID, selection: LineSelection):
        product = self.product_repo.get_by_id(session, product_id)
        options = (
            self.product_repo.list_options(session, product_id)
            if product is not None and selection.unit == UNIT_VARIANT
            else []
        )
        return product, price_line(product, options, selection)

    def add_item(
        self,
        session: Session,
        cart: Cart,
        payload: CartItemCreate,
    ) -> CartRead:
        """
        Add a product to the cart.

        Rules:
          - product must exist and be active
          - price comes from the requested unit kind
          - a paid line with the same product/unit/grams/variant gets its
            quantity increased; its price snapshot is kept
        """
        product, priced = self._price(
            session,
            payload.product_id,
            LineSelection(payload.unit, payload.grams, payload.variant_label),
        )

        existing = self.cart_repo.find_paid_line(
            session,
            cart.id,
            payload.product_id,
            payload.unit,
            priced.grams,
            priced.variant_label,
        )
        if existing:
            existing.quantity += payload.quantity
            self.cart_repo.update_item(session, existing)
        else:
            self.cart_repo.create_item(
                session,
                CartItem(
                    cart_id=cart.id,
                    product_id=payload.product_id,
                    unit=payload.unit,
                    quantity=payload.quantity,
                    grams=priced.grams,
                    variant_label=priced.variant_label,
                    unit_price=priced.unit_price,
                    is_gift=False,
                    product_name=product.name,
                ),
            )

        return self.recalculate(session, cart.id)

    def update_item(
        self,
        session: Session,
        cart: Cart,
        item_id: uuid.UUID,
        payload: CartItemUpdate,
    ) -> CartRead:
        """
        Change quantity and/or the unit selection of a paid line.

        A new unit, grams or variant re-prices the line; gift lines are
        managed by recalculation and cannot be edited. If the new selection
        matches another paid line, this line is folded into it and the
        other line keeps its price snapshot.
        """
        item = self.cart_repo.get_item(session, cart.id, item_id)
        if not item:
            raise ItemNotFound()
        if item.is_gift:
            raise GiftLineLocked()

        if payload.changes_pricing:
            unit = payload.unit or item.unit
            same_unit = unit == item.unit
            grams = payload.grams if payload.grams is not None else (item.grams if same_unit else None)
            label = (
                payload.variant_label
                if payload.variant_label is not None
                else (item.variant_label if same_unit else None)
            )
            _, priced = self._price(session, item.product_id, LineSelection(unit, grams, label))

            twin = self.cart_repo.find_paid_line(
                session,
                cart.id,
                item.product_id,
                unit,
                priced.grams,
                priced.variant_label,
                exclude_id=item.id,
            )
            if twin is not None:
                quantity = payload.quantity if payload.quantity is not None else item.quantity
                self.cart_repo.fold_line_into(session, cart.id, item.id, twin.id, quantity)
                return self.recalculate(session, cart.id)

            item.unit = unit
            item.grams = priced.grams
            item.variant_label = priced.variant_label
            item.unit_price = priced.unit_price

        if payload.quantity is not None:
            item.quantity = payload.quantity

        self.cart_repo.update_item(session, item)
        return self.recalculate(session, cart.id)

    def remove_item(
        self,
        session: Session,
        cart: Cart,
        item_id: uuid.UUID,
    ) -> CartRead:
        """
        Remove a line. Removing a gift line is allowed; it comes back on
        recalculation while its coupon still wins.
        """
        item = self.cart_repo.get_item(session, cart.id, item_id)
        if not item:
            raise ItemNotFound()

        self.cart_repo.delete_item(session, item)
        return self.recalculate(session, cart.id)

    def clear_cart(self, session: Session, cart: Cart) -> CartRead:
        """
        Delete every line and the manual coupon, then recalculate to zero.
        """
        self.cart_repo.clear_items(session, cart.id)
        self.cart_repo.set_coupon_code(session, cart.id, None)
        return self.recalculate(session, cart.id)

    # ---- coupons ----

    def apply_coupon(self, session: Session, cart: Cart, code: str) -> CartRead:
        """
        Store the code and let recalculation validate it.

        Raises:
            InvalidCoupon: unknown, inactive, or below min_cart_amount. The
            cart is still recalculated (code cleared) before raising.
        """
        normalized = normalize_code(code)
        self.cart_repo.set_coupon_code(session, cart.id, normalized)
        view = self.recalculate(session, cart.id)
        if normalized and view.coupon_code is None:
            raise InvalidCoupon()
        return view

    def remove_coupon(self, session: Session, cart: Cart) -> CartRead:
        self.cart_repo.set_coupon_code(session, cart.id, None)
        return self.recalculate(session, cart.id)

    def list_offers(self, session: Session) -> list[Coupon]:
        return self.coupon_repo.list_public_offers(session)
