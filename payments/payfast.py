import logging
import requests
from typing import Optional
from payments.canonical import CanonicalString
from payments.exceptions import TransportError, TransportTimeoutError

logger = logging.getLogger(__name__)

VALIDATE_PATH = "/eng/query/validate"
ACKNOWLEDGEMENT = "VALID"


class PayFastConfirmationClient:
    """
    Подтверждение ITN на стороне PayFast: отправляем каноническую строку на
    https://{pf_host}/eng/query/validate и ждём в ответ ровно 'VALID'.

    Повторов нет; таймаут задаётся явно.
    """

    def __init__(self, pf_host: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.pf_host = pf_host
        self.timeout = timeout
        self.session = session

    @property
    def validate_url(self) -> str:
        return f"https://{self.pf_host}{VALIDATE_PATH}"

    def _post(self, body: str) -> requests.Response:
        """
        Raises:
            TransportTimeoutError: таймаут соединения или чтения
            TransportError: любая другая ошибка транспорта
        """
        sender = self.session or requests
        try:
            return sender.post(
                self.validate_url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise TransportTimeoutError(
                f"PayFast confirmation timed out after {self.timeout}s",
                {"url": self.validate_url}
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"PayFast connection error: {e}", {"url": self.validate_url}) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"PayFast request error: {e}", {"url": self.validate_url}) from e

    def confirm(self, canonical: CanonicalString) -> bool:
        """
        Returns:
            True только при 2xx и теле ответа ровно 'VALID'; любые ошибки -> False
        """
        try:
            response = self._post(canonical.payload)
        except TransportError as e:
            logger.warning(f"PayFast confirmation transport failure ({e.error_code}): {e.message}")
            return False

        if not 200 <= response.status_code < 300:
            logger.warning(f"PayFast confirmation returned HTTP {response.status_code}")
            return False

        body = response.text
        if body != ACKNOWLEDGEMENT:
            logger.warning(f"PayFast confirmation body mismatch: {body[:64]!r}")
            return False

        return True
