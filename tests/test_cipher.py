"""
Tests for CardNumberCipher — encryption at rest and display masking.
"""

import pytest

from app.exceptions import CipherError
from app.security import CardNumberCipher, card_cipher


@pytest.fixture(scope="module")
def cipher():
    return CardNumberCipher("unit-test-secret", "unit-test-salt")


class TestEncryption:

    def test_round_trip(self, cipher):
        token = cipher.encrypt("4111111111111111")
        assert token != "4111111111111111"
        assert cipher.decrypt(token) == "4111111111111111"

    def test_ciphertext_is_text(self, cipher):
        token = cipher.encrypt("4111111111111111")
        assert isinstance(token, str)
        assert "4111111111111111" not in token

    def test_encryption_is_randomized(self, cipher):
        assert cipher.encrypt("4111111111111111") != cipher.encrypt("4111111111111111")

    @pytest.mark.parametrize("value", ["", None])
    def test_empty_values_pass_through(self, cipher, value):
        assert cipher.encrypt(value) == value
        assert cipher.decrypt(value) == value

    def test_same_secret_and_salt_share_a_key(self, cipher):
        twin = CardNumberCipher("unit-test-secret", "unit-test-salt")
        assert twin.decrypt(cipher.encrypt("1234567812345678")) == "1234567812345678"


class TestDecryptionFailures:

    def test_malformed_ciphertext(self, cipher):
        with pytest.raises(CipherError):
            cipher.decrypt("!!! definitely not base64 !!!")

    def test_tampered_ciphertext(self, cipher):
        token = cipher.encrypt("4111111111111111")
        tampered = token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")
        with pytest.raises(CipherError):
            cipher.decrypt(tampered)

    def test_other_key(self, cipher):
        other = CardNumberCipher("another-secret", "unit-test-salt")
        with pytest.raises(CipherError):
            other.decrypt(cipher.encrypt("4111111111111111"))

    def test_other_salt(self, cipher):
        other = CardNumberCipher("unit-test-secret", "another-salt")
        with pytest.raises(CipherError):
            other.decrypt(cipher.encrypt("4111111111111111"))

    def test_configured_cipher_rejects_foreign_tokens(self, cipher):
        with pytest.raises(CipherError):
            card_cipher.decrypt(cipher.encrypt("4111111111111111"))


class TestMasking:

    @pytest.mark.parametrize(
        "plain, masked",
        [
            ("1234567812345678", "************5678"),
            ("12345", "*2345"),
            ("1234", "1234"),
            ("12", "12"),
            ("", ""),
            (None, None),
        ],
    )
    def test_mask(self, plain, masked):
        assert CardNumberCipher.mask(plain) == masked

    def test_mask_keeps_length(self):
        assert len(CardNumberCipher.mask("1234567812345678")) == 16
