"""
Shared fixtures and in-memory collaborators.
"""
import pytest
import yaml

from dx.RESOLVERS.config_resolver import ConfigResolver
from dx.STORAGE.file_system import LocalFileSystem
from dx.STORAGE.secret_store import EncryptedFileSecretStore


class FakeKeyVault:
    def __init__(self):
        self.keys = {}

    def has_key(self, name):
        return name in self.keys

    def get_key(self, name):
        return self.keys[name]

    def set_key(self, name, value):
        self.keys[name] = value


class FakeEncryptor:
    """Reversible, not secure."""
    def encrypt(self, plaintext, key):
        return key.encode() + b":" + plaintext[::-1]

    def decrypt(self, ciphertext, key):
        prefix = key.encode() + b":"
        assert ciphertext.startswith(prefix)
        return ciphertext[len(prefix):][::-1]

    def create_key(self):
        return "fake-key"


class FakeOrchestrator:
    def __init__(self, checksum="", error=None):
        self.checksum = checksum
        self.error = error

    def get_dev_proxy_checksum(self):
        if self.error is not None:
            raise self.error
        return self.checksum


class FakeScm:
    def __init__(self):
        self.downloads = []

    def download(self, repo_path, ref, target_path):
        self.downloads.append((repo_path, ref, target_path))


def minimal_service(name="api", **overrides):
    service = {
        "name": name,
        "helmRepoPath": "git@example.com:charts.git",
        "helmBranch": "main",
        "helmChartRelativePath": f"charts/{name}",
    }
    service.update(overrides)
    return service


@pytest.fixture
def home(tmp_path):
    return str(tmp_path)


@pytest.fixture
def file_system(home):
    return LocalFileSystem(home)


@pytest.fixture
def write_config(tmp_path):
    """Writes a root document (dict) and optionally the current-context marker."""
    def _write(document, current=None):
        (tmp_path / ".dx-config.yaml").write_text(yaml.safe_dump(document))
        if current is not None:
            (tmp_path / ".dx").mkdir(exist_ok=True)
            (tmp_path / ".dx" / "current-context").write_text(current + "\n")
    return _write


@pytest.fixture
def resolver(file_system):
    return ConfigResolver(file_system)


@pytest.fixture
def key_vault():
    return FakeKeyVault()


@pytest.fixture
def secret_store(file_system, key_vault):
    return EncryptedFileSecretStore(file_system, key_vault, FakeEncryptor())


@pytest.fixture
def make_service():
    return minimal_service


@pytest.fixture
def make_orchestrator():
    return FakeOrchestrator


@pytest.fixture
def scm():
    return FakeScm()
