from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    BUSINESS_TIMEZONE: str = "Africa/Johannesburg"

    STORE_PROVIDER: str = "json"
    DATA_DIR: str = "./data/tables"

    SETTINGS_TTL_SECONDS: float = 600.0
    CATALOG_TTL_SECONDS: float = 480.0
    AVAILABILITY_TTL_SECONDS: float = 300.0

    ADMIN_TOKEN_SECRET: str | None = None
    PAYMENT_WEBHOOK_SECRET: str | None = None
    WEBHOOK_TOLERANCE_SECONDS: int = 300

    PAYMENT_PROVIDER: str = "yoco"
    YOCO_API_BASE_URL: str = "https://payments.yoco.com/api"
    YOCO_PAY_PAGE_BASE_URL: str = "https://pay.yoco.com"

    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    GOOGLE_CALENDAR_REFRESH_TOKEN: str | None = None
    GOOGLE_CALENDAR_BASE_URL: str = "https://www.googleapis.com/calendar/v3"
    GOOGLE_TOKEN_URL: str = "https://oauth2.googleapis.com/token"
    GOOGLE_MAPS_BASE_URL: str = "https://maps.googleapis.com/maps/api"

    RESEND_API_KEY: str | None = None

    HTTP_TIMEOUT_SECONDS: float = 10.0

    BOOKING_RATE_LIMIT: int = 10
    LOGIN_RATE_LIMIT: int = 5
    RATE_LIMIT_WINDOW_SECONDS: float = 60.0
    # Reverse proxies in front of the app that append to X-Forwarded-For.
    TRUSTED_PROXY_HOPS: int = 0

    BOOKING_ID_PREFIX: str = "BK-"


settings = Settings()
