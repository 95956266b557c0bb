"""
Local filesystem access with "~" expanded against a configurable home directory.
"""
import os
import shutil
from pathlib import Path
from typing import Optional

from ..errors import collaborator_call

HOME_ENV_VAR = "DX_HOME"

READ_WRITE = 0o600
READ_ALL_WRITE_OWNER = 0o644


def default_home() -> str:
    """``$DX_HOME`` when set, otherwise the user's home directory."""
    return os.environ.get(HOME_ENV_VAR) or str(Path.home())


class LocalFileSystem:
    """
    File storage used for the root document, secrets and generated files.
    Failures are raised as CollaboratorError.
    """
    def __init__(self, home: Optional[str] = None):
        """
        :param home: Directory "~" expands to. Defaults to ``default_home()``.
        """
        self.home = home or default_home()

    def home_dir(self) -> str:
        return self.home

    def expand(self, path: str) -> Path:
        """
        Expands a leading "~", "~/" or "~\\" against the home directory.
        """
        if path == "~":
            return Path(self.home)
        if path.startswith("~/") or path.startswith("~\\"):
            return Path(self.home) / path[2:]
        return Path(path)

    def read_file(self, path: str) -> bytes:
        target = self.expand(path)
        with collaborator_call("read file", str(target)):
            return target.read_bytes()

    def write_file(self, path: str, content: bytes, mode: int = READ_WRITE) -> None:
        """
        Writes a file, creating parent directories as needed.
        """
        target = self.expand(path)
        with collaborator_call("write file", str(target)):
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
            os.chmod(target, mode)

    def file_exists(self, path: str) -> bool:
        target = self.expand(path)
        with collaborator_call("stat file", str(target)):
            return target.exists()

    def make_dirs(self, path: str) -> None:
        target = self.expand(path)
        with collaborator_call("create directory", str(target)):
            target.mkdir(parents=True, exist_ok=True)

    def remove_all(self, path: str) -> None:
        target = self.expand(path)
        with collaborator_call("remove", str(target)):
            if target.is_dir():
                shutil.rmtree(target)
            elif target.exists():
                target.unlink()
