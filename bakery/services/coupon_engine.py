# bakery/services/coupon_engine.py
"""
Coupon evaluation for a cart subtotal.

Two independent paths run over the same coupon catalog:

  manual  - the code the customer typed; valid while the coupon is
            active and subtotal >= min_cart_amount
  auto    - every active is_auto coupon whose auto_threshold is reached;
            the largest discount wins, earlier catalog entries win ties

Both discounts are summed unless stacking is disabled, in which case a
valid manual coupon switches the automatic discount off. A free gift is
only granted by the automatic winner and only when no manual coupon is
in effect.
"""

import uuid
from dataclasses import dataclass
from typing import Sequence

from bakery.models.coupon import Coupon
from bakery.services.pricing import round_money

PERCENT = "percent"
FIXED = "fixed"


@dataclass(frozen=True)
class GiftGrant:
    product_id: uuid.UUID
    quantity: int


@dataclass(frozen=True)
class CouponResult:
    code: str
    discount: float
    gift: GiftGrant | None = None


@dataclass(frozen=True)
class CouponEvaluation:
    manual: CouponResult | None
    auto: CouponResult | None

    @property
    def coupon_discount(self) -> float:
        return self.manual.discount if self.manual else 0.0

    @property
    def auto_discount(self) -> float:
        return self.auto.discount if self.auto else 0.0

    @property
    def discount_total(self) -> float:
        return round_money(self.coupon_discount + self.auto_discount)

    @property
    def gift(self) -> GiftGrant | None:
        if self.manual is not None or self.auto is None:
            return None
        return self.auto.gift


def normalize_code(code: str | None) -> str | None:
    if code is None:
        return None
    code = code.strip().upper()
    return code or None


def compute_discount(coupon: Coupon, subtotal: float) -> float:
    """
    percent: subtotal * value / 100
    fixed:   value
    Never more than the subtotal itself.
    """
    if subtotal <= 0:
        return 0.0
    if coupon.type == PERCENT:
        discount = subtotal * float(coupon.value or 0) / 100
    elif coupon.type == FIXED:
        discount = float(coupon.value or 0)
    else:
        discount = 0.0
    return round_money(min(max(discount, 0.0), subtotal))


def _gift_for(coupon: Coupon) -> GiftGrant | None:
    if coupon.free_gift_product_id is None:
        return None
    return GiftGrant(
        product_id=coupon.free_gift_product_id,
        quantity=coupon.free_gift_qty or 1,
    )


def find_manual(
    subtotal: float,
    manual_code: str | None,
    catalog: Sequence[Coupon],
) -> CouponResult | None:
    code = normalize_code(manual_code)
    if code is None:
        return None

    coupon = next(
        (c for c in catalog if c.is_active and c.code.upper() == code),
        None,
    )
    if coupon is None or subtotal < float(coupon.min_cart_amount or 0):
        return None

    return CouponResult(code=coupon.code, discount=compute_discount(coupon, subtotal))


def find_best_auto(
    subtotal: float,
    catalog: Sequence[Coupon],
    exclude_code: str | None = None,
) -> CouponResult | None:
    if subtotal <= 0:
        return None

    best: CouponResult | None = None
    for coupon in catalog:
        if not (coupon.is_active and coupon.is_auto):
            continue
        if exclude_code is not None and coupon.code.upper() == exclude_code:
            continue
        if float(coupon.auto_threshold or 0) > subtotal:
            continue

        discount = compute_discount(coupon, subtotal)
        if best is None or discount > best.discount:
            best = CouponResult(
                code=coupon.code,
                discount=discount,
                gift=_gift_for(coupon),
            )
    return best


def evaluate(
    subtotal: float,
    manual_code: str | None,
    catalog: Sequence[Coupon],
    *,
    stacking: bool = True,
) -> CouponEvaluation:
    """
    Evaluate both coupon paths for `subtotal`.

    `catalog` is taken in the order given; callers pass it ordered by
    creation time so tie-breaking is deterministic.
    """
    manual = find_manual(subtotal, manual_code, catalog)

    if manual is not None and not stacking:
        return CouponEvaluation(manual=manual, auto=None)

    auto = find_best_auto(
        subtotal,
        catalog,
        exclude_code=manual.code.upper() if manual else None,
    )
    return CouponEvaluation(manual=manual, auto=auto)
