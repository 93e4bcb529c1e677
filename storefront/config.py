from decimal import Decimal
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "local"
    log_level: str = "INFO"

    # DATABASE_URL wins over the postgres parts when set (sqlite in tests)
    database_url_override: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")
    postgres_user: str = "storefront"
    postgres_password: str = "storefront"
    postgres_db: str = "storefront"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_currency: str = "usd"

    guest_tax_rate: Decimal = Decimal("0.115")
    user_tax_rate: Decimal = Decimal("0.115")
    free_shipping_threshold: Decimal = Decimal("75.00")
    flat_shipping_fee: Decimal = Decimal("10.00")

    brevo_api_key: str = ""
    mail_from: str = "orders@storefront.local"
    store_name: str = "Storefront"

    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    @property
    def database_url(self):
        if self.database_url_override:
            return self.database_url_override
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


settings = Settings()
