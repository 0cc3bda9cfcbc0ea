"""
Shared fixtures for ITN verification tests.

No test touches the network: DNS goes through a dict-backed resolver and the
PayFast confirmation call is replaced with a mock.
"""

import socket
import pytest
from unittest.mock import MagicMock

from payments.itn import ITNConfig, ITNVerifier
from payments.source_network import SourceNetworkValidator


PAYFAST_IPS = {
    "www.payfast.co.za": ["197.97.145.144", "197.97.145.145"],
    "sandbox.payfast.co.za": ["197.97.145.146"],
    "w1w.payfast.co.za": ["41.74.179.194"],
    "w2w.payfast.co.za": ["41.74.179.194", "41.74.179.195"],
}


class DictResolver:
    """Resolver stub: hostname -> list of IPs, unknown names raise gaierror"""

    def __init__(self, table):
        self.table = dict(table)
        self.calls = []

    def __call__(self, hostname):
        self.calls.append(hostname)
        if hostname not in self.table:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        return list(self.table[hostname])


@pytest.fixture
def resolver():
    return DictResolver({
        **PAYFAST_IPS,
        "evil.example.com": ["203.0.113.5"],
        "itn-origin.payfast.co.za": ["41.74.179.195", "203.0.113.9"],
    })


@pytest.fixture
def source_validator(resolver):
    return SourceNetworkValidator(timeout=1.0, resolver=resolver)


@pytest.fixture
def itn_pairs():
    """ITN fields as PayFast sends them, signed without a passphrase"""
    return [
        ("m_payment_id", "1001"),
        ("pf_payment_id", "pf123"),
        ("payment_status", "COMPLETE"),
        ("item_name", "Order1001"),
        ("signature", "c133b1470080eccde8a63f8c6074573d"),
    ]


@pytest.fixture
def confirmation_client():
    client = MagicMock()
    client.confirm.return_value = True
    return client


@pytest.fixture
def itn_config():
    return ITNConfig(passphrase="", pf_host="sandbox.payfast.co.za", dns_timeout=1.0, confirmation_timeout=1.0)


@pytest.fixture
def verifier(itn_config, source_validator, confirmation_client):
    return ITNVerifier(
        itn_config,
        source_validator=source_validator,
        confirmation_client=confirmation_client
    )
