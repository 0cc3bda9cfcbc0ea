import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple
from core.config import settings
from payments.canonical import build_canonical_string
from payments.webhook_security import generate_signature

logger = logging.getLogger(__name__)

PROCESS_PATH = "/eng/process"
RETURN_PATH = "/payment_return"
CANCEL_PATH = "/payment_canceled"
NOTIFY_PATH = "/payment_notify"

def build_checkout_url(
    order_id: str,
    amount,
    email: Optional[str] = None,
    item_description: Optional[str] = None,
    cfg=None
) -> str:
    """
    Ссылка на оплату PayFast (/eng/process) с подписью.

    Порядок полей важен: PayFast считает подпись по полям в том порядке, в котором
    они перечислены в документации интеграции.

    Args:
        order_id: Номер заказа (m_payment_id, и суффикс item_name после ITEM_NAME_PREFIX)
        amount: Сумма в рандах (строка, int, float или Decimal)
        email: Email покупателя (опционально)
        item_description: Описание (опционально)
    """
    cfg = cfg or settings
    if not cfg.MERCHANT_ID or not cfg.MERCHANT_KEY:
        raise ValueError("MERCHANT_ID and MERCHANT_KEY must be configured to build checkout links")
    if not cfg.HOMEBASE_URL:
        raise ValueError("HOMEBASE_URL must be configured to build checkout links")

    try:
        value = Decimal(str(amount)).quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}")
    if value <= 0:
        raise ValueError(f"Amount must be greater than 0, got {value}")

    base = cfg.HOMEBASE_URL.rstrip("/")
    data: List[Tuple[str, str]] = [
        ("merchant_id", cfg.MERCHANT_ID),
        ("merchant_key", cfg.MERCHANT_KEY),
        ("return_url", base + RETURN_PATH),
        ("cancel_url", base + CANCEL_PATH),
        ("notify_url", base + NOTIFY_PATH),
    ]
    if email:
        data.append(("email_address", email))
    data.append(("m_payment_id", str(order_id)))
    data.append(("amount", f"{value}"))
    data.append(("item_name", f"{cfg.ITEM_NAME_PREFIX}{order_id}"))
    if item_description:
        data.append(("item_description", item_description))

    canonical = build_canonical_string(data, cfg.PASSPHRASE)
    signature = generate_signature(canonical)

    logger.info(f"Checkout link built for order {order_id}, amount {value}")
    return f"https://{cfg.PF_HOST}{PROCESS_PATH}?{canonical.payload}&signature={signature}"
