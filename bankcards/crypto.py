"""
Field-level encryption for card numbers at rest.

FieldCipher is an explicit codec: the card repository calls encrypt() before
a write and decrypt() after a read. Models never touch the cipher.

Format of a stored value:

    base64( nonce (12 bytes) || ciphertext || GCM tag (16 bytes) )

AES-GCM gives authenticated encryption: a wrong key, a flipped bit or a
truncated value fails tag verification and raises DecryptionFailure instead of
returning garbage. Each call draws a fresh random nonce, so encrypting the same
card number twice yields two different stored values. Because of that the
ciphertext column cannot carry a UNIQUE constraint; digest() provides a keyed,
deterministic fingerprint for that purpose.

None passes through both directions unchanged, mirroring a nullable column.

Enterprise note:
  In production the key would come from a KMS or HSM rather than an env var.
  Only the construction of `field_cipher` below would change.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from bankcards.config import settings
from bankcards.exceptions import DecryptionFailure, EncryptionFailure

NONCE_BYTES = 12
TAG_BYTES = 16

_DIGEST_KEY_INFO = b"bankcards card-number digest"


class FieldCipher:
    """AES-GCM codec for a single string field."""

    def __init__(self, key: bytes):
        # AESGCM rejects anything but a 128/192/256-bit key with ValueError
        self._aesgcm = AESGCM(key)
        self._digest_key = HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=None,
            info=_DIGEST_KEY_INFO,
        ).derive(key)

    def encrypt(self, plaintext: str | None) -> str | None:
        if plaintext is None:
            return None
        try:
            nonce = os.urandom(NONCE_BYTES)
            sealed = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        except (ValueError, TypeError, OverflowError, UnicodeEncodeError) as exc:
            raise EncryptionFailure(f"Encryption failed: {type(exc).__name__}") from exc
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, blob: str | None) -> str | None:
        if blob is None:
            return None
        try:
            raw = base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecryptionFailure("Stored value is not valid base64") from exc

        if len(raw) < NONCE_BYTES + TAG_BYTES:
            raise DecryptionFailure("Stored value is too short")

        nonce, sealed = raw[:NONCE_BYTES], raw[NONCE_BYTES:]
        try:
            plaintext = self._aesgcm.decrypt(nonce, sealed, None)
        except InvalidTag as exc:
            raise DecryptionFailure("Authentication tag did not verify") from exc

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionFailure("Decrypted value is not UTF-8") from exc

    def digest(self, plaintext: str) -> str:
        """Keyed HMAC-SHA256 of the plaintext, hex encoded. Same input, same output."""
        mac = hmac.HMAC(self._digest_key, hashes.SHA256())
        mac.update(plaintext.encode("utf-8"))
        return mac.finalize().hex()


# Process-wide cipher. Built once from configuration and never mutated.
field_cipher = FieldCipher(settings.card_encryption_key_bytes)
