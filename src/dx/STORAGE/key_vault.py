"""
Encryption keys kept in the operating system's credential store.
"""
from typing import Protocol

import keyring
from keyring.errors import KeyringError

from ..errors import CollaboratorError, collaborator_call

SERVICE_NAME = "se.henriq.dx"


class KeyVault(Protocol):
    def has_key(self, name: str) -> bool: ...

    def get_key(self, name: str) -> str: ...

    def set_key(self, name: str, value: str) -> None: ...


class KeyringKeyVault:
    """
    KeyVault backed by the ``keyring`` library.
    """
    def __init__(self, service_name: str = SERVICE_NAME):
        self.service_name = service_name

    def has_key(self, name: str) -> bool:
        with collaborator_call("query key vault", name):
            return keyring.get_password(self.service_name, name) is not None

    def get_key(self, name: str) -> str:
        with collaborator_call("read key vault", name):
            value = keyring.get_password(self.service_name, name)
        if value is None:
            raise CollaboratorError("read key vault", name, KeyringError("key not found"))
        return value

    def set_key(self, name: str, value: str) -> None:
        with collaborator_call("write key vault", name):
            keyring.set_password(self.service_name, name, value)
