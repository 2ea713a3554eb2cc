import base64
import binascii
import os

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from clipbridge.core.core import Service
from clipbridge.errors import DecryptError

logger = structlog.get_logger(__name__)

NONCE_SIZE = 12
KEY_INFO = b"clipbridge-content-v1"


def derive_content_key(secret_key: str) -> bytes:
    """HKDF-SHA256 of the session secret key -> 32-byte AES-256 key."""
    return HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=KEY_INFO,
    ).derive(secret_key.encode("utf-8"))


class CipherService(Service):
    """Symmetric encryption of clipboard content at rest.

    Blob format: urlsafe base64 of nonce (12) + AES-GCM ciphertext + tag (16).
    """

    def encrypt(self, plaintext: str, secret_key: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = AESGCM(derive_content_key(secret_key)).encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.urlsafe_b64encode(nonce + ciphertext).decode("ascii")

    def decrypt(self, blob: str, secret_key: str) -> str:
        try:
            data = base64.urlsafe_b64decode(blob.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError, ValueError) as e:
            raise DecryptError("Content is not valid base64") from e
        if len(data) <= NONCE_SIZE:
            raise DecryptError("Content is too short")

        nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
        try:
            plaintext = AESGCM(derive_content_key(secret_key)).decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise DecryptError("Content does not match the session key") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptError("Content is not valid UTF-8") from e

    def decrypt_or_empty(self, blob: str, secret_key: str, code: str | None = None) -> str:
        """Decrypt stored content, degrading to an empty string on any failure."""
        if not blob:
            return ""
        try:
            return self.decrypt(blob, secret_key)
        except DecryptError as e:
            logger.warning("content_decrypt_failed", code=code, reason=str(e))
            return ""
