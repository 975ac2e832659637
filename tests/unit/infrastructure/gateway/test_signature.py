import pytest

from cycleops.infrastructure.gateway import expected_signature, verify_signature


@pytest.mark.unit
class TestSignature:
    def test_digest_is_stable_hex(self):
        digest = expected_signature("secret", "order_1", "pay_1")
        assert len(digest) == 64
        assert digest == expected_signature("secret", "order_1", "pay_1")

    def test_valid_signature(self):
        signature = expected_signature("secret", "order_1", "pay_1")
        assert verify_signature("secret", "order_1", "pay_1", signature)
        assert verify_signature("secret", "order_1", "pay_1", f" {signature.upper()} ")

    @pytest.mark.parametrize(
        "secret,order_id,payment_id",
        [("other", "order_1", "pay_1"), ("secret", "order_2", "pay_1"), ("secret", "order_1", "pay_2")],
    )
    def test_any_changed_input_fails(self, secret, order_id, payment_id):
        signature = expected_signature("secret", "order_1", "pay_1")
        assert not verify_signature(secret, order_id, payment_id, signature)

    @pytest.mark.parametrize("signature", ["", "not-hex", "é" * 64])
    def test_garbage_signatures_fail(self, signature):
        assert not verify_signature("secret", "order_1", "pay_1", signature)

    def test_missing_secret_never_verifies(self):
        signature = expected_signature("", "order_1", "pay_1")
        assert not verify_signature("", "order_1", "pay_1", signature)
