from pydantic_settings import BaseSettings
from typing import Literal, Optional

class Settings(BaseSettings):
    # PayFast
    PASSPHRASE: str = ""  # Пустая строка отключает суффикс &passphrase= при подписи
    PF_HOST: str = "sandbox.payfast.co.za"  # www.payfast.co.za в продакшене
    MERCHANT_ID: Optional[str] = None
    MERCHANT_KEY: Optional[str] = None
    HOMEBASE_URL: Optional[str] = None  # Базовый URL для return/cancel/notify ссылок
    ITEM_NAME_PREFIX: str = "Order"

    # Таймауты внешних вызовов (секунды)
    DNS_TIMEOUT: float = 5.0
    CONFIRMATION_TIMEOUT: float = 10.0

    # Откуда брать адрес источника ITN:
    # host_header - заголовок Host запроса, client_address - адрес TCP-клиента
    ORIGIN_SOURCE: Literal["host_header", "client_address"] = "host_header"

    # Production настройки
    ALLOWED_ORIGINS: Optional[str] = None  # Через запятую для нескольких доменов
    ENVIRONMENT: str = "development"  # development, production
    LOG_LEVEL: str = "INFO"

    # Telegram уведомления о непрошедших проверках (опционально)
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_CHAT_ID: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
