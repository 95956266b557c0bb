"""
Nested secret values as seen by templates.

Secret keys are stored flat ("database.password") but rendered hierarchically
(``Secrets.database.password``). A node is either a Scalar leaf or a Nested
mapping, never both.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Union

from .config import Secret


@dataclass(frozen=True)
class Scalar:
    value: str


@dataclass
class Nested:
    children: Dict[str, "SecretValue"] = field(default_factory=dict)

    def to_plain(self) -> Dict[str, Any]:
        """
        Converts the tree into plain dicts and strings for a template engine.
        """
        plain: Dict[str, Any] = {}
        for name, child in self.children.items():
            if isinstance(child, Scalar):
                plain[name] = child.value
            else:
                plain[name] = child.to_plain()
        return plain


SecretValue = Union[Scalar, Nested]


def build_secret_tree(secrets: Iterable[Secret]) -> Nested:
    """
    Splits every key on "." and inserts its value into a nested tree.

    Conflicting legacy data is tolerated: when a Scalar already occupies a
    prefix of the key, the secret is skipped; a Scalar written at a key always
    replaces whatever was there before.
    """
    root = Nested()
    for secret in secrets:
        *parents, leaf = secret.key.split(".")
        node = root
        for part in parents:
            child = node.children.get(part)
            if child is None:
                child = Nested()
                node.children[part] = child
            elif isinstance(child, Scalar):
                node = None
                break
            node = child
        if node is not None:
            node.children[leaf] = Scalar(secret.value)
    return root
