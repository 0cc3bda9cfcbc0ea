"""
Tests: ITN orchestration - extraction, independent checks, failure hook
"""

import logging
from unittest.mock import MagicMock

from payments.exceptions import (
    ConfirmationFailedError,
    SignatureMismatchError,
    UntrustedOriginError,
)
from payments.itn import ITNConfig, ITNVerifier


class TestITNVerifierProcess:

    def test_all_checks_pass(self, verifier, itn_pairs, confirmation_client, caplog):
        caplog.set_level(logging.INFO)

        outcome = verifier.process(itn_pairs, "www.payfast.co.za")

        assert outcome.signature_valid
        assert outcome.origin_trusted
        assert outcome.gateway_confirmed
        assert outcome.verified
        assert "ITN received for order 1001" in caplog.text
        assert "ITN verified" in caplog.text

        canonical = confirmation_client.confirm.call_args.args[0]
        assert canonical.payload == "m_payment_id=1001&pf_payment_id=pf123&payment_status=COMPLETE&item_name=Order1001"

    def test_missing_fields_stop_before_checks(self, verifier, confirmation_client, caplog):
        outcome = verifier.process([("m_payment_id", "1")], "www.payfast.co.za")

        assert outcome is None
        confirmation_client.confirm.assert_not_called()
        assert "order_reference" not in caplog.text
        assert "gateway_payment_id, payment_status, item_name" in caplog.text

    def test_checks_fail_independently(self, verifier, itn_pairs, confirmation_client, caplog):
        """
        Given: forged signature, untrusted origin, gateway confirms
        Then: two failures logged, confirmation still ran
        """
        pairs = [(k, "0" * 32 if k == "signature" else v) for k, v in itn_pairs]

        outcome = verifier.process(pairs, "evil.example.com")

        assert outcome.signature_valid is False
        assert outcome.origin_trusted is False
        assert outcome.gateway_confirmed is True
        confirmation_client.confirm.assert_called_once()
        assert "itn:signature:mismatch" in caplog.text
        assert "itn:origin:untrusted" in caplog.text
        assert "itn:confirmation:failed" not in caplog.text

    def test_confirmation_failure_is_logged(self, verifier, itn_pairs, confirmation_client, caplog):
        confirmation_client.confirm.return_value = False

        outcome = verifier.process(itn_pairs, "www.payfast.co.za")

        assert outcome.signature_valid and outcome.origin_trusted
        assert outcome.gateway_confirmed is False
        assert "Server confirmation test failed" in caplog.text

    def test_crashing_check_counts_as_failed(self, verifier, itn_pairs, confirmation_client, caplog):
        confirmation_client.confirm.side_effect = RuntimeError("boom")

        outcome = verifier.process(itn_pairs, "www.payfast.co.za")

        assert outcome.gateway_confirmed is False
        assert outcome.signature_valid and outcome.origin_trusted
        assert "ITN check 'confirmation' crashed" in caplog.text

    def test_signature_uses_passphrase(self, source_validator, confirmation_client, itn_pairs):
        verifier = ITNVerifier(
            ITNConfig(passphrase="secret"),
            source_validator=source_validator,
            confirmation_client=confirmation_client
        )

        outcome = verifier.process(itn_pairs, "www.payfast.co.za")

        # itn_pairs are signed without a passphrase
        assert outcome.signature_valid is False

    def test_canonical_string_is_not_logged(self, verifier, itn_pairs, caplog):
        caplog.set_level(logging.DEBUG)
        pairs = [(k, "0" * 32 if k == "signature" else v) for k, v in itn_pairs]

        verifier.process(pairs, "evil.example.com")

        assert "m_payment_id=1001&pf_payment_id" not in caplog.text


class TestFailureHook:

    def test_hook_receives_failures(self, source_validator, confirmation_client, itn_pairs):
        hook = MagicMock()
        confirmation_client.confirm.return_value = False
        verifier = ITNVerifier(
            ITNConfig(),
            source_validator=source_validator,
            confirmation_client=confirmation_client,
            on_failure=hook
        )
        pairs = [(k, "bad" if k == "signature" else v) for k, v in itn_pairs]

        outcome = verifier.process(pairs, "evil.example.com")

        hook.assert_called_once()
        hook_outcome, failures = hook.call_args.args
        assert hook_outcome is outcome
        assert [type(f) for f in failures] == [
            SignatureMismatchError, UntrustedOriginError, ConfirmationFailedError
        ]
        assert failures[1].details["origin_host"] == "evil.example.com"
        assert failures[0].details["order_reference"] == "1001"

    def test_hook_not_called_when_verified(self, source_validator, confirmation_client, itn_pairs):
        hook = MagicMock()
        verifier = ITNVerifier(
            ITNConfig(),
            source_validator=source_validator,
            confirmation_client=confirmation_client,
            on_failure=hook
        )

        verifier.process(itn_pairs, "www.payfast.co.za")

        hook.assert_not_called()

    def test_hook_error_is_logged_not_raised(self, source_validator, confirmation_client, itn_pairs, caplog):
        verifier = ITNVerifier(
            ITNConfig(),
            source_validator=source_validator,
            confirmation_client=confirmation_client,
            on_failure=MagicMock(side_effect=ValueError("hook down"))
        )

        outcome = verifier.process(itn_pairs, "evil.example.com")

        assert outcome.origin_trusted is False
        assert "ITN failure hook raised" in caplog.text


class TestITNConfig:

    def test_from_settings(self):
        settings = MagicMock(
            PASSPHRASE="pw",
            PF_HOST="www.payfast.co.za",
            ITEM_NAME_PREFIX="Ord",
            DNS_TIMEOUT=2.0,
            CONFIRMATION_TIMEOUT=4.0
        )

        config = ITNConfig.from_settings(settings)

        assert config.passphrase == "pw"
        assert config.pf_host == "www.payfast.co.za"
        assert config.trusted_hostnames == (
            "www.payfast.co.za", "sandbox.payfast.co.za", "w1w.payfast.co.za", "w2w.payfast.co.za"
        )

    def test_default_components_use_config_timeouts(self):
        verifier = ITNVerifier(ITNConfig(pf_host="www.payfast.co.za", dns_timeout=2.0, confirmation_timeout=4.0))

        assert verifier.source_validator.timeout == 2.0
        assert verifier.confirmation_client.timeout == 4.0
        assert verifier.confirmation_client.validate_url == "https://www.payfast.co.za/eng/query/validate"
