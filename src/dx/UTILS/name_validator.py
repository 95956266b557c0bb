"""
Sanitization for names that become path segments under the state directory.
"""
import re

from ..errors import InvalidNameError

VALID_NAME = re.compile(r'^[A-Za-z0-9_-]+$')
FORBIDDEN_FRAGMENTS = ("..", "/", "\\", "\x00")


def validate_context_name(name: str) -> str:
    """
    Validates a context name before it is used to build a filesystem path.

    :param name: The candidate name.
    :return: The name, unchanged.
    :raises InvalidNameError: If the name is empty, contains a path traversal
        fragment, or uses characters other than letters, digits, dash and underscore.
    """
    if not name:
        raise InvalidNameError("context name cannot be empty")
    if any(fragment in name for fragment in FORBIDDEN_FRAGMENTS):
        raise InvalidNameError(f"context name {name!r} contains path traversal characters")
    if not VALID_NAME.match(name):
        raise InvalidNameError(
            f"context name {name!r} may only contain letters, digits, '-' and '_'"
        )
    return name
