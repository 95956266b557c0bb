"""
Managers for reading and writing the secrets of the current context.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from ..MODELS.config import Secret
from ..RESOLVERS.config_resolver import ConfigResolver
from ..STORAGE.secret_store import EncryptedFileSecretStore
from ..UTILS.template_extractor import TemplateVariableExtractor
from ..errors import DxError, MissingSecretError, SecretConflictError, SecretNotFoundError

logger = logging.getLogger(__name__)


def find_conflicting_secret_key(secrets: Sequence[Secret], new_key: str) -> Tuple[str, bool]:
    """
    Finds an existing key standing in a dot-boundary prefix relationship with
    ``new_key`` ("db" and "db.password"). An identical key is an update, not a
    conflict; "db" and "db_host" do not conflict.

    :return: (conflicting key, True) for the first conflict in list order,
             ("", False) otherwise.
    """
    for secret in secrets:
        existing = secret.key
        if existing == new_key:
            continue
        if new_key.startswith(existing + ".") or existing.startswith(new_key + "."):
            return existing, True
    return "", False


@dataclass
class ConfigureReport:
    """Outcome of ``SecretManager.configure``."""
    expected: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    added: List[str] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)  # (key, reason)


class SecretManager:
    """
    Secret operations on the current context. The conflict rule is enforced
    only here, when writing; data already stored is never re-validated.
    """
    def __init__(self, resolver: ConfigResolver, store: EncryptedFileSecretStore):
        self.resolver = resolver
        self.store = store

    def set(self, key: str, value: str) -> None:
        """
        Creates or updates a secret.

        :raises SecretConflictError: If the key collides with an existing one.
        """
        if not value:
            raise DxError("secret value cannot be empty")
        context_name = self.resolver.load_current_context_name()
        secrets = self.store.load(context_name)

        existing = [s for s in secrets if s.key == key]
        if existing:
            for secret in existing:
                secret.value = value
        else:
            conflicting, found = find_conflicting_secret_key(secrets, key)
            if found:
                raise SecretConflictError(key, conflicting)
            secrets.append(Secret(key=key, value=value))

        self.store.save(secrets, context_name)
        logger.info("Secret '%s' saved for context '%s'", key, context_name)

    def get(self, key: str) -> str:
        context_name = self.resolver.load_current_context_name()
        for secret in self.store.load(context_name):
            if secret.key == key:
                return secret.value
        raise SecretNotFoundError(key)

    def list_keys(self) -> List[str]:
        context = self.resolver.load_current_context()
        return sorted(s.key for s in self.store.load(context.name))

    def delete(self, key: str) -> None:
        context_name = self.resolver.load_current_context_name()
        secrets = [s for s in self.store.load(context_name) if s.key != key]
        self.store.save(secrets, context_name)

    def configure(self, check_only: bool = False,
                  prompt: Optional[Callable[[str], str]] = None) -> ConfigureReport:
        """
        Compares the secrets referenced by the context's templates with the
        stored ones and fills the gaps.

        :param check_only: Report missing secrets instead of prompting.
        :param prompt: Reads a value for a key; None when no terminal is available.
        :raises MissingSecretError: In check-only mode, or without a prompt,
            when any referenced secret is missing.
        """
        context = self.resolver.load_current_context()
        report = ConfigureReport(expected=TemplateVariableExtractor.extract_secret_keys(context))
        if not report.expected:
            return report

        secrets = self.store.load(context.name)
        stored = {s.key for s in secrets}
        report.missing = [k for k in report.expected if k not in stored]
        if not report.missing:
            return report

        if check_only or prompt is None:
            raise MissingSecretError(report.missing)

        for key in report.missing:
            value = prompt(key)
            if not value:
                report.skipped.append((key, "empty value"))
                continue
            conflicting, found = find_conflicting_secret_key(secrets, key)
            if found:
                report.skipped.append((key, f"conflicts with existing secret '{conflicting}'"))
                continue
            secrets.append(Secret(key=key, value=value))
            report.added.append(key)

        if report.added:
            self.store.save(secrets, context.name)
        return report
