"""
FluxState Cipher - XOR Obfuscation
==================================

WARNING: this is obfuscation, not encryption. The key is a SHA-256 digest
of a passphrase, repeated over the input and XORed byte by byte. There is
no nonce and no authentication tag, so identical plaintexts produce
identical outputs and tampering goes undetected. Use an authenticated
cipher if confidentiality matters.

Output is base64 text so it can be stored wherever plain strings go.
"""

import base64
import hashlib

import numpy as np


class XorCipher:
    """Repeating-key XOR over UTF-8 bytes, base64-wrapped."""

    def __init__(self, key: bytes):
        if not key:
            raise ValueError("XorCipher key must not be empty")
        self._key = np.frombuffer(key, dtype=np.uint8)

    @classmethod
    def from_passphrase(cls, passphrase: str) -> "XorCipher":
        return cls(hashlib.sha256(passphrase.encode("utf-8")).digest())

    @property
    def key(self) -> bytes:
        return self._key.tobytes()

    def _apply(self, data: bytes) -> bytes:
        if not data:
            return b""
        buf = np.frombuffer(data, dtype=np.uint8)
        # np.resize repeats the key cyclically to the data length
        return (buf ^ np.resize(self._key, buf.shape[0])).tobytes()

    def encrypt(self, text: str) -> str:
        return base64.b64encode(self._apply(text.encode("utf-8"))).decode("ascii")

    def decrypt(self, text: str) -> str:
        return self._apply(base64.b64decode(text, validate=True)).decode("utf-8")

    def __repr__(self) -> str:
        return f"XorCipher(<{self._key.shape[0]}-byte key>)"
