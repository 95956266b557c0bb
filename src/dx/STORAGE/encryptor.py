"""
Symmetric encryption of the secrets file.
"""
import base64
import os
from typing import Protocol

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import collaborator_call

KEY_BITS = 256
NONCE_SIZE = 12


class Encryptor(Protocol):
    def encrypt(self, plaintext: bytes, key: str) -> bytes: ...

    def decrypt(self, ciphertext: bytes, key: str) -> bytes: ...

    def create_key(self) -> str: ...


class AesGcmEncryptor:
    """
    AES-256-GCM. Keys are base64 strings; ciphertexts are base64 of
    nonce followed by the sealed data.
    """
    def encrypt(self, plaintext: bytes, key: str) -> bytes:
        with collaborator_call("encrypt secrets"):
            aesgcm = AESGCM(base64.b64decode(key))
            nonce = os.urandom(NONCE_SIZE)
            sealed = aesgcm.encrypt(nonce, plaintext, None)
            return base64.b64encode(nonce + sealed)

    def decrypt(self, ciphertext: bytes, key: str) -> bytes:
        with collaborator_call("decrypt secrets"):
            aesgcm = AESGCM(base64.b64decode(key))
            raw = base64.b64decode(ciphertext)
            if len(raw) < NONCE_SIZE:
                raise ValueError("ciphertext too short")
            return aesgcm.decrypt(raw[:NONCE_SIZE], raw[NONCE_SIZE:], None)

    def create_key(self) -> str:
        return base64.b64encode(AESGCM.generate_key(bit_length=KEY_BITS)).decode("ascii")
