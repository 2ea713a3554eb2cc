"""Tests for content encryption."""

import pytest

from clipbridge.errors import DecryptError

KEY = "0f" * 32
OTHER_KEY = "a1" * 32


class TestCipherService:
    """Tests for encrypt/decrypt of clipboard content."""

    @pytest.fixture(autouse=True)
    def setup(self, services):
        self.cipher = services.cipher

    def test_round_trip(self):
        blob = self.cipher.encrypt("hello", KEY)
        assert blob != "hello"
        assert self.cipher.decrypt(blob, KEY) == "hello"

    def test_unicode_round_trip(self):
        text = "привет 👋 ñ"
        assert self.cipher.decrypt(self.cipher.encrypt(text, KEY), KEY) == text

    def test_fresh_nonce_per_encryption(self):
        """Test that encrypting the same text twice yields different blobs."""
        assert self.cipher.encrypt("same", KEY) != self.cipher.encrypt("same", KEY)

    def test_wrong_key_raises(self):
        blob = self.cipher.encrypt("secret", KEY)
        with pytest.raises(DecryptError):
            self.cipher.decrypt(blob, OTHER_KEY)

    def test_corrupted_blob_raises(self):
        blob = self.cipher.encrypt("secret", KEY)
        tampered = blob[:-4] + ("AAAA" if not blob.endswith("AAAA") else "BBBB")
        with pytest.raises(DecryptError):
            self.cipher.decrypt(tampered, KEY)

    def test_not_base64_raises(self):
        with pytest.raises(DecryptError):
            self.cipher.decrypt("%%% not base64 %%%", KEY)

    def test_too_short_raises(self):
        with pytest.raises(DecryptError, match="too short"):
            self.cipher.decrypt("AAAA", KEY)


class TestDecryptOrEmpty:
    """Tests for the failure-tolerant decrypt used at the store boundary."""

    @pytest.fixture(autouse=True)
    def setup(self, services):
        self.cipher = services.cipher

    def test_empty_blob(self):
        assert self.cipher.decrypt_or_empty("", KEY) == ""

    def test_valid_blob(self):
        assert self.cipher.decrypt_or_empty(self.cipher.encrypt("text", KEY), KEY) == "text"

    def test_failure_degrades_to_empty(self):
        blob = self.cipher.encrypt("text", KEY)
        assert self.cipher.decrypt_or_empty(blob, OTHER_KEY, code="123456") == ""
        assert self.cipher.decrypt_or_empty("garbage", KEY) == ""
