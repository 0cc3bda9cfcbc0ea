"""
Проверка подписи ITN от PayFast.

PayFast подписывает каноническую строку MD5 (с парольной фразой, если она задана).
MD5 сам по себе слабый - поэтому результат проверки подписи используется только
вместе с проверкой источника и подтверждением на стороне шлюза.
"""

import hmac
import hashlib
import logging
from typing import Optional
from payments.canonical import CanonicalString

logger = logging.getLogger(__name__)

def generate_signature(canonical: CanonicalString) -> str:
    """
    MD5 от UTF-8 байтов канонической строки, hex в нижнем регистре.

    Args:
        canonical: Каноническая строка (используется её signable-форма)

    Returns:
        32 hex-символа
    """
    return hashlib.md5(canonical.signable.encode('utf-8')).hexdigest()

def verify_signature(canonical: CanonicalString, signature: Optional[str]) -> bool:
    """
    Проверяет подпись, присланную PayFast.

    Args:
        canonical: Каноническая строка уведомления
        signature: Значение поля signature из уведомления

    Returns:
        True если подпись совпадает (точное совпадение, с учётом регистра, без trim)
    """
    if not signature:
        logger.warning("ITN signature missing")
        return False

    expected_signature = generate_signature(canonical)

    # Сравниваем байты: compare_digest не принимает не-ASCII str
    return hmac.compare_digest(
        expected_signature.encode('utf-8'),
        signature.encode('utf-8')
    )
