"""
Обработка ITN (Instant Transaction Notification) от PayFast.

Порядок: Received -> FieldsExtracted -> Canonicalized -> Checked -> Acknowledged.
Ответ 200 "Success" шлюзу уходит ДО проверок (см. payments/router.py), поэтому
результат проверок на ответ не влияет. Непройденные проверки логируются и
передаются в хук on_failure.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict
from payments.canonical import CanonicalString, build_canonical_string
from payments.exceptions import (
    ConfirmationFailedError,
    ITNError,
    MissingFieldsError,
    SignatureMismatchError,
    UntrustedOriginError,
)
from payments.fields import NotificationFields, Params, extract_fields
from payments.payfast import PayFastConfirmationClient
from payments.source_network import TRUSTED_HOSTNAMES, SourceNetworkValidator
from payments.webhook_security import verify_signature

logger = logging.getLogger(__name__)


class ITNConfig(BaseModel):
    """Неизменяемая конфигурация проверки, собирается один раз при старте."""

    model_config = ConfigDict(frozen=True)

    passphrase: str = ""
    pf_host: str = "sandbox.payfast.co.za"
    trusted_hostnames: Tuple[str, ...] = TRUSTED_HOSTNAMES
    item_name_prefix: str = "Order"
    dns_timeout: float = 5.0
    confirmation_timeout: float = 10.0

    @classmethod
    def from_settings(cls, settings) -> "ITNConfig":
        return cls(
            passphrase=settings.PASSPHRASE,
            pf_host=settings.PF_HOST,
            item_name_prefix=settings.ITEM_NAME_PREFIX,
            dns_timeout=settings.DNS_TIMEOUT,
            confirmation_timeout=settings.CONFIRMATION_TIMEOUT,
        )


class VerificationOutcome(BaseModel):
    """Результаты трёх независимых проверок. Используется только для логов и хука."""

    model_config = ConfigDict(frozen=True)

    notification: NotificationFields
    signature_valid: bool
    origin_trusted: bool
    gateway_confirmed: bool

    @property
    def verified(self) -> bool:
        return self.signature_valid and self.origin_trusted and self.gateway_confirmed


FailureHook = Callable[[VerificationOutcome, List[ITNError]], None]


class ITNVerifier:
    def __init__(
        self,
        config: ITNConfig,
        source_validator: Optional[SourceNetworkValidator] = None,
        confirmation_client: Optional[PayFastConfirmationClient] = None,
        on_failure: Optional[FailureHook] = None
    ):
        self.config = config
        self.source_validator = source_validator or SourceNetworkValidator(
            config.trusted_hostnames, timeout=config.dns_timeout
        )
        self.confirmation_client = confirmation_client or PayFastConfirmationClient(
            config.pf_host, timeout=config.confirmation_timeout
        )
        self.on_failure = on_failure

    def canonicalize(self, fields: NotificationFields) -> CanonicalString:
        return build_canonical_string(fields.pairs, self.config.passphrase)

    def _run_check(self, name: str, check: Callable[[], bool]) -> bool:
        # Непредвиденная ошибка внутри проверки = проверка не пройдена, остальные продолжают
        try:
            return bool(check())
        except Exception as e:
            logger.error(f"ITN check '{name}' crashed: {e}", exc_info=True)
            return False

    def run_checks(self, fields: NotificationFields, canonical: CanonicalString, origin_host: str) -> VerificationOutcome:
        checks = {
            "signature": lambda: verify_signature(canonical, fields.signature),
            "origin": lambda: self.source_validator.is_trusted(origin_host),
            "confirmation": lambda: self.confirmation_client.confirm(canonical),
        }
        with ThreadPoolExecutor(max_workers=len(checks), thread_name_prefix="itn-check") as pool:
            futures = {name: pool.submit(self._run_check, name, check) for name, check in checks.items()}
            results = {name: future.result() for name, future in futures.items()}

        return VerificationOutcome(
            notification=fields,
            signature_valid=results["signature"],
            origin_trusted=results["origin"],
            gateway_confirmed=results["confirmation"],
        )

    def collect_failures(self, outcome: VerificationOutcome, origin_host: str) -> List[ITNError]:
        details = {
            "order_reference": outcome.notification.order_reference,
            "gateway_payment_id": outcome.notification.gateway_payment_id,
        }
        failures: List[ITNError] = []
        if not outcome.signature_valid:
            failures.append(SignatureMismatchError("Signature validity test failed", details))
        if not outcome.origin_trusted:
            failures.append(UntrustedOriginError(
                "Server IP test failed",
                {**details, "origin_host": origin_host}
            ))
        if not outcome.gateway_confirmed:
            failures.append(ConfirmationFailedError(
                "Server confirmation test failed",
                {**details, "pf_host": self.config.pf_host}
            ))
        return failures

    def process(self, params: Params, origin_host: str) -> Optional[VerificationOutcome]:
        """
        Полная обработка одного уведомления (вызывается фоновой задачей после ответа шлюзу).

        Returns:
            VerificationOutcome или None, если не хватает обязательных полей
        """
        try:
            fields = extract_fields(params)
        except MissingFieldsError as e:
            logger.error(f"Post payment check: compiling order data from PayFast notification failed: {e.message}")
            return None

        logger.info(
            f"ITN received for order {fields.order_number(self.config.item_name_prefix)} "
            f"(pf_payment_id={fields.gateway_payment_id}, status={fields.payment_status})"
        )

        canonical = self.canonicalize(fields)
        outcome = self.run_checks(fields, canonical, origin_host)

        failures = self.collect_failures(outcome, origin_host)
        for failure in failures:
            logger.warning(
                f"Post payment check: {failure.message} [{failure.error_code}] - "
                f"payment gateway data: {fields.describe()}"
            )

        if not failures:
            logger.info(f"ITN verified: {fields.describe()}")
            return outcome

        if self.on_failure is not None:
            try:
                self.on_failure(outcome, failures)
            except Exception as e:
                logger.error(f"ITN failure hook raised: {e}", exc_info=True)

        return outcome
