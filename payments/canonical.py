"""
Каноническая строка ITN - вход для подписи и для подтверждения на стороне PayFast.
"""
from typing import Iterable, Tuple
from urllib.parse import quote_plus

SIGNATURE_FIELD = "signature"


class CanonicalString:
    """
    Неизменяемая каноническая строка уведомления.

    payload  - key=value&... всех полей до поля signature (отправляется на /eng/query/validate)
    signable - payload + &passphrase=... если задана парольная фраза (по нему считается подпись)
    """

    __slots__ = ("_payload", "_signable")

    def __init__(self, payload: str, signable: str):
        object.__setattr__(self, "_payload", payload)
        object.__setattr__(self, "_signable", signable)

    def __setattr__(self, name, value):
        raise AttributeError("CanonicalString is immutable")

    @property
    def payload(self) -> str:
        return self._payload

    @property
    def signable(self) -> str:
        return self._signable

    def __str__(self) -> str:
        return self._signable

    def __eq__(self, other) -> bool:
        if not isinstance(other, CanonicalString):
            return NotImplemented
        return (self._payload, self._signable) == (other._payload, other._signable)

    def __hash__(self) -> int:
        return hash((self._payload, self._signable))

    def __repr__(self) -> str:
        # Строка может содержать идентификаторы платежа - целиком не показываем
        return f"CanonicalString(<{len(self._payload)} chars>, salted={self._signable != self._payload})"


def build_canonical_string(pairs: Iterable[Tuple[str, str]], passphrase: str = "") -> CanonicalString:
    """
    Собирает каноническую строку из полей в порядке получения.

    Поля начиная с первого поля signature (включительно) в строку не попадают.
    """
    summed = ""
    for key, value in pairs:
        if key == SIGNATURE_FIELD:
            break
        summed += key + "=" + quote_plus(value) + "&"

    if summed.endswith("&"):
        summed = summed[:-1]

    signable = summed
    if passphrase:
        signable = summed + "&passphrase=" + quote_plus(passphrase)

    return CanonicalString(summed, signable)
