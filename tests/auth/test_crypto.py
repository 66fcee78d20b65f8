"""Tests for CryptoService - AES-256-CBC encryption and OTP tokens."""

import pytest

from auth.crypto import CryptoService, capitalize, normalize_key
from auth.exceptions import DecryptionError, ValidationError
from auth.types import EncryptedPayload

KEY = "test-crypto-secret"


class TestNormalizeKey:

    def test_short_key_zero_padded(self):
        key = normalize_key("abc")
        assert key == b"abc" + b"\x00" * 29

    def test_long_key_truncated(self):
        assert normalize_key("k" * 40) == b"k" * 32

    def test_multibyte_characters_counted_in_bytes(self):
        assert len(normalize_key("é" * 20)) == 32


class TestCapitalize:

    @pytest.mark.parametrize(
        "text, expected",
        [("ada", "Ada"), ("Ada", "Ada"), ("mcDonald", "McDonald"), ("", ""), (None, "")],
    )
    def test_capitalize(self, text, expected):
        assert capitalize(text) == expected


class TestEncryptDecrypt:

    @pytest.mark.parametrize("value", ["s3cret-pass", 482913, {"a": [1, 2]}, "пароль"])
    def test_decrypt_inverts_encrypt(self, crypto, value):
        assert crypto.decrypt(crypto.encrypt(value, KEY), KEY) == value

    def test_fresh_iv_per_call(self, crypto):
        first = crypto.encrypt("same", KEY)
        second = crypto.encrypt("same", KEY)

        assert first.iv != second.iv
        assert first.encrypted_data != second.encrypted_data

    def test_output_is_hex(self, crypto):
        payload = crypto.encrypt("value", KEY)

        assert len(bytes.fromhex(payload.iv)) == 16
        assert len(bytes.fromhex(payload.encrypted_data)) % 16 == 0

    def test_accepts_serialized_payload(self, crypto):
        payload = crypto.encrypt("value", KEY).model_dump(by_alias=True)

        assert set(payload) == {"iv", "encryptedData"}
        assert crypto.decrypt(payload, KEY) == "value"

    def test_wrong_key_fails(self, crypto):
        payload = crypto.encrypt({"password": "s3cret"}, KEY)

        with pytest.raises(DecryptionError):
            crypto.decrypt(payload, "another-key")

    @pytest.mark.parametrize(
        "payload",
        [
            {"iv": "zz", "encryptedData": "00"},
            {"iv": "00" * 8, "encryptedData": "00" * 16},
            {"encryptedData": "00" * 16},
            "not a payload",
        ],
    )
    def test_malformed_payload(self, crypto, payload):
        with pytest.raises(DecryptionError):
            crypto.decrypt(payload, KEY)

    def test_unaligned_ciphertext(self, crypto):
        payload = EncryptedPayload(iv="00" * 16, encrypted_data="00" * 5)

        with pytest.raises(DecryptionError):
            crypto.decrypt(payload, KEY)


class TestGenerateOtp:

    def test_token_carries_payload_and_encrypted_otp(self, crypto, token_signer):
        result = crypto.generate_otp({"email": "a@example.com"}, "activation-secret")

        claims = token_signer.verify(result.token, "activation-secret")
        assert claims["payload"] == {"email": "a@example.com"}
        assert crypto.decrypt_otp(claims["encryptedOtp"]) == result.otp

    @pytest.mark.parametrize("length", [6, 8, 10])
    def test_otp_has_requested_digits(self, crypto, length):
        result = crypto.generate_otp({}, "activation-secret", otp_length=length)

        assert len(str(result.otp)) == length

    @pytest.mark.parametrize("length", [4, 5, 11])
    def test_otp_length_out_of_range(self, crypto, length):
        with pytest.raises(ValidationError):
            crypto.generate_otp({}, "activation-secret", otp_length=length)

    def test_expiry_applied(self, crypto, token_signer):
        result = crypto.generate_otp({}, "activation-secret", expires_in="2m")

        claims = token_signer.verify(result.token, "activation-secret")
        assert claims["exp"] - claims["iat"] == 120

    def test_requires_secret(self, token_signer):
        with pytest.raises(ValueError):
            CryptoService("", token_signer)
