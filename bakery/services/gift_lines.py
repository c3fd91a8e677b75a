# bakery/services/gift_lines.py
"""
Free-gift line reconciliation.

plan_gift_lines() compares the gift lines currently in a cart with the
gift the winning coupon grants and returns the writes needed to make
them agree. It is pure; CartService applies the plan. A cart that
already matches produces an empty plan.
"""

import uuid
from dataclasses import dataclass, field
from typing import Sequence

from bakery.models.cart import CartItem
from bakery.services.coupon_engine import GiftGrant
from bakery.services.pricing import UNIT_PIECE


@dataclass
class GiftPlan:
    insert: list[CartItem] = field(default_factory=list)
    update: list[tuple[CartItem, int]] = field(default_factory=list)
    delete: list[CartItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.insert or self.update or self.delete)


def plan_gift_lines(
    cart_id: uuid.UUID,
    gift_lines: Sequence[CartItem],
    grant: GiftGrant | None,
    product_name: str | None = None,
) -> GiftPlan:
    plan = GiftPlan()

    keep: CartItem | None = None
    for line in gift_lines:
        if grant is not None and keep is None and line.product_id == grant.product_id:
            keep = line
        else:
            plan.delete.append(line)

    if grant is None:
        return plan

    if keep is None:
        plan.insert.append(
            CartItem(
                cart_id=cart_id,
                product_id=grant.product_id,
                unit=UNIT_PIECE,
                quantity=grant.quantity,
                unit_price=0.0,
                is_gift=True,
                product_name=product_name,
            )
        )
    elif keep.quantity != grant.quantity:
        plan.update.append((keep, grant.quantity))

    return plan
