# bakery/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Supabase Postgres connection string)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Pricing policy:
      - COUPON_STACKING: when True a valid manual coupon and the best
        automatic coupon both discount the cart; when False the manual
        coupon suppresses the automatic discount.
      - RECALC_MAX_ATTEMPTS: how many times a cart recalculation is re-run
        after losing an optimistic version race.

    Reviews:
      - REVIEW_DEFAULT_STATUS: "pending" holds new reviews for moderation.
    """

    PROJECT_NAME: str = "Alka Bakery API"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    CART_CURRENCY: str = "INR"
    COUPON_STACKING: bool = True
    RECALC_MAX_ATTEMPTS: int = 3

    DELIVERY_FEE: float = 50.0

    # approved | pending: status given to new product reviews
    REVIEW_DEFAULT_STATUS: str = "approved"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Only the app factory calls this; everything else reads
    `request.app.state.settings`.
    """
    return Settings()
