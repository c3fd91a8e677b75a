# bakery/core/errors.py
"""
Typed errors raised by the cart core and the services around it.

Every error is an HTTPException subclass, so FastAPI maps it to a
response without per-route try/except. The app renders it as
`{"detail": ..., "error_code": ...}`. Client-correctable problems are
4xx; backing-store failures are StorageError (503).
"""

from fastapi import HTTPException, status


class BakeryError(HTTPException):
    """Base class for all application errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Bad request"
    error_code: str = "BAD_REQUEST"

    def __init__(self, detail: str | None = None, headers: dict[str, str] | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class ProductNotFound(BakeryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Product not found"
    error_code = "PRODUCT_NOT_FOUND"


class VariantNotFound(BakeryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Variant not found"
    error_code = "VARIANT_NOT_FOUND"


class UnitNotAvailable(BakeryError):
    default_detail = "Product is not sold in this unit"
    error_code = "UNIT_NOT_AVAILABLE"


class ItemNotFound(BakeryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Item not found in cart"
    error_code = "ITEM_NOT_FOUND"


class GiftLineLocked(BakeryError):
    default_detail = "Cannot modify gift items directly"
    error_code = "GIFT_LINE_LOCKED"


class InvalidCoupon(BakeryError):
    default_detail = "Invalid or inapplicable coupon code"
    error_code = "INVALID_COUPON"


class CouponNotFound(BakeryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Coupon not found"
    error_code = "COUPON_NOT_FOUND"


class CouponCodeTaken(BakeryError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Coupon code already exists"
    error_code = "COUPON_CODE_TAKEN"


class CartConflict(BakeryError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Cart was modified concurrently, please retry"
    error_code = "CART_CONFLICT"


class EmptyCart(BakeryError):
    default_detail = "Cart is empty"
    error_code = "EMPTY_CART"


class OrderNotFound(BakeryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Order not found"
    error_code = "ORDER_NOT_FOUND"


class InvalidOrderTransition(BakeryError):
    default_detail = "Invalid order status transition"
    error_code = "INVALID_ORDER_TRANSITION"


class StorageError(BakeryError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage unavailable"
    error_code = "STORAGE_ERROR"


class CategoryNotFound(BakeryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Category not found"
    error_code = "CATEGORY_NOT_FOUND"


class CategoryNameTaken(BakeryError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Category already exists"
    error_code = "CATEGORY_NAME_TAKEN"


class CategoryInUse(BakeryError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Category is still used by active products"
    error_code = "CATEGORY_IN_USE"


class AddressNotFound(BakeryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Address not found"
    error_code = "ADDRESS_NOT_FOUND"


class ReviewNotFound(BakeryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Review not found"
    error_code = "REVIEW_NOT_FOUND"
