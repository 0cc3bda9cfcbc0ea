"""
Иерархия ошибок проверки ITN (Instant Transaction Notification) от PayFast.

Ни одна из этих ошибок не меняет HTTP-ответ платёжному шлюзу: они логируются
и передаются в хук обработки неудачных проверок.
"""
from typing import Any, Dict, List, Optional


class ITNError(Exception):
    """Базовая ошибка проверки уведомления."""

    def __init__(
        self,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class MissingFieldsError(ITNError):
    """
    В уведомлении отсутствуют обязательные поля.

    Атрибуты:
        missing: канонические имена отсутствующих полей (в фиксированном порядке)
        missing_params: соответствующие имена параметров запроса
    """

    def __init__(self, missing: List[str], missing_params: Optional[List[str]] = None):
        self.missing = list(missing)
        self.missing_params = list(missing_params or [])
        super().__init__(
            "itn:fields:missing",
            f"missing required order data: {', '.join(self.missing)}",
            {"missing": self.missing, "missing_params": self.missing_params}
        )


class SignatureMismatchError(ITNError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("itn:signature:mismatch", message, details)


class UntrustedOriginError(ITNError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("itn:origin:untrusted", message, details)


class ConfirmationFailedError(ITNError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("itn:confirmation:failed", message, details)


class TransportError(ITNError):
    """
    Сбой DNS или исходящего HTTP-вызова.

    Перехватывается на границе компонента и трактуется как непройденная проверка.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: str = "itn:transport:error"):
        super().__init__(error_code, message, details)


class TransportTimeoutError(TransportError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, error_code="itn:transport:timeout")
