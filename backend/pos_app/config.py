from pydantic_settings import BaseSettings
from typing import Optional
from decimal import Decimal


class Settings(BaseSettings):
    # Database (receipt archive)
    database_url: str = "sqlite:///./pos_receipts.db"

    # Store
    store_name: str = "Retail POS"
    currency: str = "INR"

    # Product / Customer directory service
    directory_api_url: str = "http://localhost:3000/api"
    directory_api_token: Optional[str] = None  # Sent as Bearer token when set
    directory_timeout_seconds: float = 10.0

    # Billing
    default_tax_percent: Decimal = Decimal("18")  # Regional GST rate
    default_payment_method: str = "cash"

    # Barcode acquisition
    max_image_dimension: int = 1024  # Longest side after downscaling uploads
    camera_probe_limit: int = 4  # Device indices 0..N-1 are probed
    camera_frame_interval_seconds: float = 0.05
    camera_join_timeout_seconds: float = 5.0
    scan_cue_enabled: bool = True

    # CORS Configuration
    cors_origins: str = "http://localhost:3000,http://localhost:3001"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields in .env file


settings = Settings()
