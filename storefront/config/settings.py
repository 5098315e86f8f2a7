from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration using Pydantic BaseSettings.
    Loads environment variables (and an optional .env file) automatically.
    """

    # API Configuration
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Storefront API"
    PROJECT_DESCRIPTION: str = "Catalog, checkout, payments and digital delivery"
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = Field("development", description="Deployment environment name")
    DEBUG: bool = Field(False, description="Enable debug mode")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # PostgreSQL Database Settings
    DB_HOST: str = Field("localhost", description="PostgreSQL host")
    DB_PORT: int = Field(5432, description="PostgreSQL port")
    DB_NAME: str = Field("storefront", description="Database name")
    DB_USER: str = Field("postgres", description="Database user")
    DB_PASSWORD: str | None = Field(None, description="Database password")
    DB_ECHO: bool = Field(False, description="Log SQL queries (debug only)")

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(20, description="Connection pool size")
    DB_MAX_OVERFLOW: int = Field(30, description="Pool max overflow")
    DB_POOL_RECYCLE: int = Field(3600, description="Recycle connections every N seconds")
    DB_POOL_TIMEOUT: int = Field(30, description="Timeout to obtain a pooled connection")

    # Redis Settings
    REDIS_HOST: str = Field("localhost", description="Redis host")
    REDIS_PORT: int = Field(6379, description="Redis port")
    REDIS_DB: int = Field(0, description="Redis database")
    REDIS_PASSWORD: str | None = Field(None, description="Redis password")

    # Payment gateway (Stripe-compatible REST API)
    PAYMENT_GATEWAY_BASE_URL: str = Field("https://api.stripe.com", description="Payment provider base URL")
    PAYMENT_GATEWAY_SECRET_KEY: str = Field("", description="Payment provider secret API key")
    PAYMENT_WEBHOOK_SECRET: str = Field("", description="Secret used to sign provider webhooks")
    PAYMENT_WEBHOOK_TOLERANCE_SECONDS: int = Field(300, description="Max webhook timestamp age")
    PAYMENT_GATEWAY_TIMEOUT: float = Field(15.0, description="Provider request timeout in seconds")
    PAYMENT_WEBHOOK_DEDUP_TTL_SECONDS: int = Field(24 * 60 * 60, description="Webhook event dedup window")

    # Checkout
    CURRENCY: str = Field("USD", description="ISO currency code for prices and orders")
    SHIPPING_FLAT_FEE: int = Field(500, description="Flat shipping fee in minor units")
    FREE_SHIPPING_THRESHOLD: int = Field(
        10000, description="Subtotal (minor units) above which shipping is free"
    )
    ORDER_NUMBER_MAX_ATTEMPTS: int = Field(3, description="Retries when an order number collides")

    # Digital delivery
    DIGITAL_DOWNLOAD_EXPIRY_DAYS: int = Field(30, description="Days a download grant stays valid")
    DIGITAL_DOWNLOAD_MAX_USES: int = Field(3, description="Downloads allowed per grant")

    # Notifications
    NOTIFICATIONS_ENABLED: bool = Field(True, description="Publish push notifications to Redis")
    ADMIN_NOTIFICATION_GROUP: str = Field("admins", description="Push group receiving order events")

    # SMTP
    SMTP_ENABLED: bool = Field(False, description="Send transactional email")
    SMTP_SERVER: str = Field("localhost", description="SMTP server")
    SMTP_PORT: int = Field(587, description="SMTP port")
    SMTP_USERNAME: str | None = Field(None, description="SMTP username")
    SMTP_PASSWORD: str | None = Field(None, description="SMTP password")
    SMTP_USE_TLS: bool = Field(True, description="Use STARTTLS")
    SMTP_FROM_EMAIL: str = Field("orders@storefront.local", description="Sender address")

    # Logging
    LOG_LEVEL: str = Field("INFO", description="Root log level")
    LOG_FORMAT: str = Field("colored", description="colored, json or plain")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @computed_field
    @property
    def is_development(self) -> bool:
        """Whether the app runs in development mode."""
        return self.DEBUG or self.ENVIRONMENT.lower() in ["development", "dev", "local"]

    @computed_field
    @property
    def redis_url(self) -> str:
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


# Settings singleton
_settings_instance = None


def get_settings() -> Settings:
    """
    Return a cached settings instance.
    Avoids loading environment variables more than once.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
