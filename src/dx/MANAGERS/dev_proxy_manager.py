"""
Managers for the generated dev proxy of the current context.
"""
import logging
from typing import Optional, Protocol

from ..CONVERTERS.to_dev_proxy import DevProxyConfigGenerator, DevProxyConfigs
from ..RESOLVERS.config_resolver import ConfigResolver
from ..STORAGE.file_system import LocalFileSystem, READ_ALL_WRITE_OWNER, READ_WRITE
from ..UTILS.fingerprint import should_rebuild
from ..errors import collaborator_call

logger = logging.getLogger(__name__)


class Orchestrator(Protocol):
    def get_dev_proxy_checksum(self) -> str:
        """Fingerprint label of the deployed dev proxy, empty if none is deployed."""
        ...


class DevProxyManager:
    """
    Writes the dev proxy files and decides whether a deployed proxy is stale.
    """
    def __init__(self, resolver: ConfigResolver, file_system: LocalFileSystem,
                 generator: Optional[DevProxyConfigGenerator] = None):
        self.resolver = resolver
        self.file_system = file_system
        self.generator = generator or DevProxyConfigGenerator()

    def save_configuration(self) -> DevProxyConfigs:
        """
        Renders and writes the dev proxy files to ``~/.dx/<context>/dev-proxy``.

        :return: The generated files.
        """
        context = self.resolver.load_current_context()
        configs = self.generator.generate(context)
        root = f"~/.dx/{context.name}/dev-proxy"
        self.file_system.write_file(
            f"{root}/haproxy/haproxy.cfg", configs.haproxy_config.encode("utf-8"), READ_ALL_WRITE_OWNER
        )
        self.file_system.write_file(f"{root}/helm/Chart.yaml", configs.helm_chart.encode("utf-8"), READ_WRITE)
        self.file_system.write_file(
            f"{root}/helm/templates/dev-proxy.yaml", configs.helm_deployment.encode("utf-8"), READ_WRITE
        )
        logger.info("Dev proxy configuration written to %s (checksum %s)", root, configs.checksum)
        return configs

    def needs_rebuild(self, orchestrator: Orchestrator) -> bool:
        """
        :raises CollaboratorError: If the deployed fingerprint cannot be read.
        """
        context = self.resolver.load_current_context()
        current = self.generator.build_values(context)["checksum"]
        with collaborator_call("read dev proxy checksum", context.name):
            stored = orchestrator.get_dev_proxy_checksum()
        return should_rebuild(current, stored)
