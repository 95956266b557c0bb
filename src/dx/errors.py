# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Exception hierarchy for DX.

Every failure the command handlers are expected to report to the user derives
from DxError. Anything else is a programming error and is left to propagate.
"""
from contextlib import contextmanager
from typing import Iterator, List, Optional


class DxError(Exception):
    """Base class for all errors reported by DX."""


class StructuralConfigError(DxError):
    """
    A configuration document is malformed or violates a structural rule.

    Raised for the first violation found; violations are never aggregated.
    """


class InvalidNameError(DxError):
    """A context name failed sanitization."""


class ContextNotFoundError(DxError):
    """The requested configuration context is not defined."""

    def __init__(self, name: str):
        super().__init__(f"context '{name}' not found")
        self.name = name


class SecretConflictError(DxError):
    """
    A secret key would stand in a dot-prefix relationship with an existing key.

    A key cannot hold both a direct value and nested keys once rendered, so the
    existing key has to be deleted first.
    """

    def __init__(self, key: str, conflicting_key: str):
        super().__init__(
            f"cannot set secret '{key}': conflicts with existing secret '{conflicting_key}' "
            f"(a secret key cannot have both a direct value and nested keys); "
            f"delete '{conflicting_key}' first with 'dx secret delete {conflicting_key}'"
        )
        self.key = key
        self.conflicting_key = conflicting_key


class SecretNotFoundError(DxError):
    """The requested secret key is not stored for the current context."""

    def __init__(self, key: str):
        super().__init__(f"secret '{key}' not found")
        self.key = key


class MissingSecretError(DxError):
    """Secrets referenced by templates are absent from the store."""

    def __init__(self, missing: List[str]):
        noun = "secret" if len(missing) == 1 else "secrets"
        super().__init__(
            f"{len(missing)} missing {noun}: {', '.join(missing)}; "
            f"run 'dx secret configure' to set values"
        )
        self.missing = list(missing)


class CollaboratorError(DxError):
    """
    Wraps a failure raised by an external collaborator.

    The original exception is kept both as ``original`` and as ``__cause__`` so
    callers can still dispatch on its type.
    """

    def __init__(self, operation: str, target: str = "", original: Optional[BaseException] = None):
        message = f"{operation} failed"
        if target:
            message += f" for {target}"
        if original is not None:
            message += f": {original}"
        super().__init__(message)
        self.operation = operation
        self.target = target
        self.original = original


@contextmanager
def collaborator_call(operation: str, target: str = "") -> Iterator[None]:
    """
    Re-raises any non-DX exception from the wrapped block as a CollaboratorError.

    :param operation: Short description of what was attempted, e.g. "read file".
    :param target: The path or key the operation was acting on.
    """
    try:
        yield
    except DxError:
        raise
    except Exception as e:
        raise CollaboratorError(operation, target, e) from e
