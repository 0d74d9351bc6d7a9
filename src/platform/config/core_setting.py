import json
from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Cinema Booking'
    VERSION: str = '0.1.0'
    DEBUG: bool = False  # DEBUG adds the file sink and Logger.io arg/return logs
    LOG_DIR: Path = _PROJECT_ROOT / 'logs'
    LOG_FILE_RETENTION: str = '7 days'

    # Security (bearer tokens are issued elsewhere, only verified here)
    SECRET_KEY: SecretStr = SecretStr('test_secret_key_change_in_production')
    ALGORITHM: str = 'HS256'

    # CORS: comma separated or a JSON list
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and v.strip().startswith('['):
            return json.loads(v)
        if isinstance(v, str):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # Database
    DATABASE_URL: Optional[str] = None  # e.g. sqlite+aiosqlite:///./booking.db
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'cinema_booking'

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 10
    DB_POOL_RECYCLE: int = 3600
    AUTO_CREATE_TABLES: bool = True

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:'
            f'{self.POSTGRES_PASSWORD.get_secret_value()}@'
            f'{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Seat holds
    SEAT_HOLD_TTL_SECONDS: int = 600
    SEAT_HOLD_MAX_TTL_SECONDS: int = 1800
    MAX_SEATS_PER_HOLD: int = 10
    SEAT_LOCK_TIMEOUT_SECONDS: float = 5.0

    # Background sweep
    ENABLE_HOLD_SWEEPER: bool = True
    HOLD_SWEEP_INTERVAL_SECONDS: float = 30.0
    PENDING_INVOICE_TIMEOUT_SECONDS: int = 1800

    # VNPay
    VNPAY_TMN_CODE: str = 'DEMOTMN1'
    VNPAY_HASH_SECRET: SecretStr = SecretStr('demo_hash_secret')
    VNPAY_PAYMENT_URL: str = 'https://sandbox.vnpayment.vn/paymentv2/vpcpay.html'
    VNPAY_API_URL: str = 'https://sandbox.vnpayment.vn/merchant_webapi/api/transaction'
    VNPAY_RETURN_URL: str = 'http://localhost:3000/payment/return'
    VNPAY_TIMEOUT_SECONDS: float = 10.0
    VNPAY_ORDER_TYPE: str = 'billpayment'
    VNPAY_LOCALE: str = 'vn'

    # Observability
    SERVICE_NAME: str = 'booking-service'
    DEPLOY_ENV: str = 'local_dev'
    ENABLE_TRACING: bool = False
    OTEL_EXPORTER_OTLP_ENDPOINT: str = 'http://localhost:4317'
    OTEL_CONSOLE_EXPORT: bool = False


settings = Settings()  # type: ignore
