"""
Content-addressed checkout locations for (repository, ref) pairs.
"""
import hashlib
import os

HASH_LENGTH = 12
CHARTS_SCOPE = "charts"


def repository_hash(repo_path: str, ref: str) -> str:
    """
    Returns the first 12 hex characters of SHA-256 over "{repo_path}-{ref}".

    Identical pairs always produce the same value on any machine, so an
    existing checkout can be reused. The 48-bit truncation makes collisions
    between distinct pairs unlikely, not impossible.
    """
    digest = hashlib.sha256(f"{repo_path}-{ref}".encode("utf-8")).hexdigest()
    return digest[:HASH_LENGTH]


def checkout_path(base_dir: str, context_name: str, scope_name: str, digest: str) -> str:
    return os.path.join(base_dir, context_name, scope_name, digest)


class PathDeriver:
    """
    Derives checkout directories below a fixed state directory (``~/.dx``).
    """
    def __init__(self, base_dir: str):
        """
        :param base_dir: The state directory all checkouts live under.
        """
        self.base_dir = base_dir

    def helm_path(self, context_name: str, helm_repo_path: str, helm_branch: str) -> str:
        return checkout_path(
            self.base_dir, context_name, CHARTS_SCOPE, repository_hash(helm_repo_path, helm_branch)
        )

    def source_path(self, context_name: str, service_name: str, git_repo_path: str, git_ref: str) -> str:
        """
        Checkout path for a service's sources or one of its images.
        Images share the owning service's name as scope.
        """
        return checkout_path(
            self.base_dir, context_name, service_name, repository_hash(git_repo_path, git_ref)
        )
