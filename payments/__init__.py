# Импортируем функции для удобства
from .canonical import CanonicalString, build_canonical_string
from .fields import NotificationFields, extract_fields
from .itn import ITNConfig, ITNVerifier, VerificationOutcome
from .payfast import PayFastConfirmationClient
from .source_network import SourceNetworkValidator, TRUSTED_HOSTNAMES
from .webhook_security import generate_signature, verify_signature

__all__ = [
    'CanonicalString',
    'build_canonical_string',
    'NotificationFields',
    'extract_fields',
    'ITNConfig',
    'ITNVerifier',
    'VerificationOutcome',
    'PayFastConfirmationClient',
    'SourceNetworkValidator',
    'TRUSTED_HOSTNAMES',
    'generate_signature',
    'verify_signature'
]
