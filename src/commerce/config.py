"""Runtime configuration for the commerce core.

Settings are read from environment variables with one prefix per concern:

    COMMERCE_*    application behaviour (adapters, task mode, return window)
    RAZORPAY_*    payment gateway credentials and endpoint
    SHIPROCKET_*  courier aggregator credentials and endpoint
"""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """Payment gateway (Razorpay) configuration."""

    model_config = SettingsConfigDict(env_prefix="RAZORPAY_")

    key_id: str = Field(default="", description="Public key id shared with the checkout widget")
    key_secret: SecretStr = Field(default=SecretStr(""), description="Secret used for API auth and signatures")
    base_url: str = Field(default="https://api.razorpay.com/v1", description="Gateway API root")
    timeout: float = Field(default=15.0, ge=1.0, le=60.0, description="Per-call timeout in seconds")
    currency: str = Field(default="INR", description="Currency for gateway orders")


class CourierSettings(BaseSettings):
    """Courier aggregator (Shiprocket) configuration."""

    model_config = SettingsConfigDict(env_prefix="SHIPROCKET_")

    email: str = Field(default="", description="API user email")
    password: SecretStr = Field(default=SecretStr(""), description="API user password")
    base_url: str = Field(default="https://apiv2.shiprocket.in/v1/external", description="Aggregator API root")
    pickup_location: str = Field(default="Primary", description="Named pickup location")
    pickup_postcode: str = Field(default="110001", description="Pickup pincode for serviceability checks")
    timeout: float = Field(default=15.0, ge=1.0, le=60.0, description="Per-call timeout in seconds")
    token_ttl_hours: int = Field(default=24, description="Lifetime of a login token")


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_prefix="COMMERCE_")

    environment: str = Field(default="development", description="development, test or production")
    debug: bool = Field(default=False, description="Include tracebacks in 500 responses")

    gateway_adapter: str = Field(default="fake", description="fake or razorpay")
    courier_adapter: str = Field(default="fake", description="fake or shiprocket")
    email_adapter: str = Field(default="fake", description="fake or log")
    admin_email: str = Field(default="admin@example.com", description="Recipient of new-order notices")

    return_window_days: int = Field(default=7, ge=0, description="Days after delivery a return is accepted")
    task_mode: str = Field(default="thread", description="thread or eager")
    task_workers: int = Field(default=4, ge=1, description="Background worker threads")
    tracking_refetch_delay: float = Field(default=60.0, ge=0.0, description="Seconds before re-fetching an AWB")

    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    courier: CourierSettings = Field(default_factory=CourierSettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (read once from the environment)."""
    return Settings()


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
