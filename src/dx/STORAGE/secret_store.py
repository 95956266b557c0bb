"""
Per-context secret lists, encrypted at rest.
"""
import json
import logging
from typing import List

from pydantic import ValidationError

from ..MODELS.config import Secret
from ..UTILS.name_validator import validate_context_name
from ..errors import CollaboratorError
from .encryptor import Encryptor
from .file_system import LocalFileSystem, READ_WRITE
from .key_vault import KeyVault

logger = logging.getLogger(__name__)


def secrets_file_path(context_name: str) -> str:
    return f"~/.dx/{context_name}/secrets"


def encryption_key_name(context_name: str) -> str:
    return f"{context_name}-encryption-key"


class EncryptedFileSecretStore:
    """
    Stores the secrets of each context as an encrypted JSON list of
    ``{"Key": ..., "Value": ...}`` records under ``~/.dx/<context>/secrets``.
    The encryption key lives in the key vault.
    """
    def __init__(self, file_system: LocalFileSystem, key_vault: KeyVault, encryptor: Encryptor):
        self.file_system = file_system
        self.key_vault = key_vault
        self.encryptor = encryptor

    def load(self, context_name: str) -> List[Secret]:
        """
        Loads the secrets of a context.

        :return: The stored secrets, or an empty list when either the secrets
                 file or the encryption key does not exist yet.
        """
        validate_context_name(context_name)
        path = secrets_file_path(context_name)
        key_name = encryption_key_name(context_name)
        if not self.file_system.file_exists(path) or not self.key_vault.has_key(key_name):
            logger.debug("No secrets stored for context '%s'", context_name)
            return []

        encrypted = self.file_system.read_file(path)
        key = self.key_vault.get_key(key_name)
        decrypted = self.encryptor.decrypt(encrypted, key)
        try:
            records = json.loads(decrypted) or []
            return [Secret.model_validate(r) for r in records]
        except (ValueError, ValidationError) as e:
            raise CollaboratorError("decode secrets", path, e) from e

    def save(self, secrets: List[Secret], context_name: str) -> None:
        """
        Encrypts and writes the secrets of a context, creating the encryption
        key on first use.
        """
        validate_context_name(context_name)
        key_name = encryption_key_name(context_name)
        if not self.key_vault.has_key(key_name):
            logger.info("Creating encryption key for context '%s'", context_name)
            self.key_vault.set_key(key_name, self.encryptor.create_key())
        key = self.key_vault.get_key(key_name)

        payload = json.dumps([s.model_dump(by_alias=True) for s in secrets]).encode("utf-8")
        self.file_system.write_file(
            secrets_file_path(context_name), self.encryptor.encrypt(payload, key), READ_WRITE
        )
