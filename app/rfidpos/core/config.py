from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "RFIDPOS"
    DATABASE_URL: str = "sqlite+pysqlite:///./rfidpos.db"
    TAX_RATE: Decimal = Decimal("8.5")
    KILL_TAG_AFTER_SALE: bool = False
    KILL_PASSWORD: str = "00000000"
    SERIAL_PORT: str = ""
    SERIAL_BAUDRATE: int = 9600
    SERIAL_READ_TIMEOUT_SEC: float = 0.2
    READER_DEBOUNCE_MS: int = 100
    ACTIVITY_LOG_DURABLE_LIMIT: int = 100
    EXPORT_VERSION: str = "1.0"
    COMPANY_NAME: str = "Your Store Name"
    COMPANY_ADDRESS: str = "123 Store Street, City, State 12345"
    COMPANY_PHONE: str = "+1 (555) 123-4567"
    COMPANY_EMAIL: str = "contact@yourstore.com"
    INVOICE_PREFIX: str = "INV"
    INVOICE_TERMS: str = "Payment due within 30 days"
    METRICS_ENABLED: bool = True

settings = Settings()
