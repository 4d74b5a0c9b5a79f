from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # Session (cart storage lives in the signed session cookie)
    SESSION_SECRET_KEY: str
    SESSION_MAX_AGE: int = 3600 * 24 * 30

    # Shop Configuration
    SHOP_NAME: str = "AMV Shoes"
    PAGE_SIZE: int = 12

    # Cart
    CART_STORAGE_KEY: str = "amv_cart"

    # Catalog source
    CATALOG_PATH: str = str(BASE_DIR / "data" / "products.json")
    CATALOG_URL: Optional[str] = None
    CATALOG_API_KEY: Optional[str] = None
    CATALOG_DELAY: float = 0.5

    # Checkout
    ORDER_PREFIX: str = "AMV"
    CHECKOUT_CLEAR_DELAY: float = 3.0

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
