"""Symmetric encryption and OTP generation.

AES-256-CBC with PKCS7 padding via the cryptography package. Every call to
encrypt draws a fresh random IV, so equal plaintexts never produce equal
ciphertexts. The IV travels with the ciphertext in EncryptedPayload.
"""

import json
import os
import secrets
from datetime import timedelta
from typing import Any

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from pydantic import ValidationError as PydanticValidationError

from auth.exceptions import DecryptionError, ValidationError
from auth.tokens import TokenSigner
from auth.types import EncryptedPayload, OtpResult

KEY_LENGTH = 32
IV_LENGTH = 16
OTP_MIN_LENGTH = 6
OTP_MAX_LENGTH = 10


def normalize_key(key: str) -> bytes:
    """UTF-8 encode key and zero-pad or truncate it to exactly 32 bytes."""
    raw = key.encode("utf-8")
    if len(raw) >= KEY_LENGTH:
        return raw[:KEY_LENGTH]
    return raw.ljust(KEY_LENGTH, b"\x00")


def capitalize(text: str | None) -> str:
    """Upper-case the first character, leave the rest untouched."""
    if not text:
        return ""
    return text[0].upper() + text[1:]


class CryptoService:
    """
    Encryption and OTP capability injected into AuthService.

    Args:
        crypto_secret: Key used to encrypt OTPs embedded in activation tokens
        token_signer: Signer used for the activation token itself
    """

    def __init__(self, crypto_secret: str, token_signer: TokenSigner):
        if not crypto_secret:
            raise ValueError("crypto_secret is required")
        self._crypto_secret = crypto_secret
        self._token_signer = token_signer

    def encrypt(self, value: Any, key: str) -> EncryptedPayload:
        """JSON-serialize value and encrypt it under key."""
        plaintext = json.dumps(value).encode("utf-8")
        iv = os.urandom(IV_LENGTH)

        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = Cipher(algorithms.AES(normalize_key(key)), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return EncryptedPayload(iv=iv.hex(), encrypted_data=ciphertext.hex())

    def decrypt(self, payload: EncryptedPayload | dict, key: str) -> Any:
        """
        Inverse of encrypt.

        Raises:
            DecryptionError: Wrong key, tampered data, or malformed payload.
        """
        try:
            if not isinstance(payload, EncryptedPayload):
                payload = EncryptedPayload.model_validate(payload)
            iv = bytes.fromhex(payload.iv)
            ciphertext = bytes.fromhex(payload.encrypted_data)
        except (PydanticValidationError, ValueError, TypeError) as e:
            raise DecryptionError(f"Malformed encrypted payload: {e}") from e

        if len(iv) != IV_LENGTH:
            raise DecryptionError("Malformed encrypted payload: bad IV length")

        try:
            decryptor = Cipher(algorithms.AES(normalize_key(key)), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()

            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()

            return json.loads(plaintext.decode("utf-8"))
        except ValueError as e:
            # Covers bad padding, non-block-aligned input, bad UTF-8 and bad JSON
            raise DecryptionError("Unable to decrypt payload") from e

    def generate_otp(
        self,
        payload: Any,
        secret: str,
        expires_in: timedelta | int | str = "10m",
        otp_length: int = 6,
    ) -> OtpResult:
        """
        Draw an OTP and sign a token carrying payload and the encrypted OTP.

        Args:
            payload: Claims to embed (the pending signup record)
            secret: Activation secret used to sign the token
            expires_in: Token lifetime
            otp_length: Digits in the OTP, 6 through 10

        Raises:
            ValidationError: If otp_length is out of range.
        """
        if not OTP_MIN_LENGTH <= otp_length <= OTP_MAX_LENGTH:
            raise ValidationError(
                f"OTP length must be between {OTP_MIN_LENGTH} and {OTP_MAX_LENGTH} digits."
            )

        otp_min = 10 ** (otp_length - 1)
        otp_max = 10**otp_length - 1
        otp = otp_min + secrets.randbelow(otp_max - otp_min + 1)

        encrypted_otp = self.encrypt(otp, self._crypto_secret)
        token = self._token_signer.sign(
            {
                "payload": payload,
                "encryptedOtp": encrypted_otp.model_dump(by_alias=True),
            },
            secret,
            expires_in,
        )
        return OtpResult(token=token, otp=otp)

    def decrypt_otp(self, encrypted_otp: EncryptedPayload | dict) -> Any:
        """Decrypt an OTP produced by generate_otp."""
        return self.decrypt(encrypted_otp, self._crypto_secret)
