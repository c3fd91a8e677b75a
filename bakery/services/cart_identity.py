# bakery/services/cart_identity.py
import logging
import uuid
from dataclasses import dataclass

from sqlmodel import Session

from bakery.models.cart import Cart
from bakery.repositories.cart_repo import CartRepository
from bakery.services.pricing import line_key

logger = logging.getLogger(__name__)


@dataclass
class ResolvedCart:
    cart: Cart
    # id of a guest cart folded into `cart` during this resolution
    merged_from: uuid.UUID | None = None


class CartResolver:
    """
    Decides which cart a request is talking about.

    Inputs are the guest token (x-cart-id header / cart_id cookie) and
    the authenticated user id, either of which may be missing:

      user cart | guest cart          | result
      ----------+---------------------+----------------------------------
      -         | -                   | new cart (owned if signed in)
      yes       | -                   | user cart
      -         | anonymous           | claim guest cart for the user
      yes       | anonymous           | merge guest into user cart
      any       | owned by this user  | that cart

    A guest token pointing at someone else's cart is ignored.
    """

    def __init__(self, cart_repo: CartRepository, currency: str = "INR"):
        self.cart_repo = cart_repo
        self.currency = currency

    def resolve(
        self,
        session: Session,
        cart_token: uuid.UUID | None,
        user_id: uuid.UUID | None,
    ) -> ResolvedCart:
        user_cart = (
            self.cart_repo.latest_active_for_user(session, user_id)
            if user_id
            else None
        )
        guest_cart = (
            self.cart_repo.get_active_cart(session, cart_token)
            if cart_token
            else None
        )

        if guest_cart is not None:
            if guest_cart.user_id is not None and guest_cart.user_id == user_id:
                return ResolvedCart(guest_cart)

            if guest_cart.user_id is None and user_id is None:
                return ResolvedCart(guest_cart)

            if guest_cart.user_id is None and user_id is not None:
                if user_cart is not None:
                    self.merge(session, guest_cart.id, user_cart.id)
                    return ResolvedCart(
                        self.cart_repo.get_cart(session, user_cart.id),
                        merged_from=guest_cart.id,
                    )

                if self.cart_repo.claim_cart(session, guest_cart.id, user_id):
                    logger.info("Cart %s claimed by user %s", guest_cart.id, user_id)
                    return ResolvedCart(self.cart_repo.get_cart(session, guest_cart.id))

                # Someone else claimed it between our read and write.
                fresh = self.cart_repo.get_active_cart(session, guest_cart.id)
                if fresh is not None and fresh.user_id == user_id:
                    return ResolvedCart(fresh)
                user_cart = self.cart_repo.latest_active_for_user(session, user_id)

        if user_cart is not None:
            return ResolvedCart(user_cart)

        cart = self.cart_repo.create_cart(
            session,
            Cart(user_id=user_id, status="active", currency=self.currency),
        )
        logger.info("Created cart %s (user=%s)", cart.id, user_id)
        return ResolvedCart(cart)

    def merge(
        self,
        session: Session,
        source_cart_id: uuid.UUID,
        target_cart_id: uuid.UUID,
    ) -> None:
        """
        Fold every line of the source cart into the target cart, then mark
        the source cart merged.

        Paid lines with the same product/unit/grams/variant are summed;
        others are re-pointed to the target. Gift lines are dropped, the
        target's recalculation decides its own gifts. Each line moves in
        its own transaction guarded on its current cart, so re-running an
        interrupted merge only handles what is left.
        """
        # Snapshot first: every commit below expires the loaded rows.
        lines = [
            (line.id, line.is_gift, line_key(line), line.quantity)
            for line in self.cart_repo.list_items(session, source_cart_id)
        ]

        moved = summed = 0
        for line_id, is_gift, key, quantity in lines:
            if is_gift:
                self.cart_repo.drop_line(session, source_cart_id, line_id)
                continue

            product_id, unit, grams, variant_label = key
            match = self.cart_repo.find_paid_line(
                session, target_cart_id, product_id, unit, grams, variant_label
            )
            if match is not None:
                if self.cart_repo.fold_line_into(
                    session, source_cart_id, line_id, match.id, quantity
                ):
                    summed += 1
            elif self.cart_repo.move_line(
                session, source_cart_id, line_id, target_cart_id
            ):
                moved += 1

        self.cart_repo.mark_merged(session, source_cart_id)
        logger.info(
            "Merged cart %s into %s (%d moved, %d summed)",
            source_cart_id,
            target_cart_id,
            moved,
            summed,
        )
