"""
Just-in-time checkout of the services a script refers to.
"""
import logging
from typing import List, Protocol

from ..MODELS.config import ConfigurationContext, Service
from ..UTILS.template_extractor import TemplateVariableExtractor
from ..errors import StructuralConfigError, collaborator_call

logger = logging.getLogger(__name__)


class SourceControl(Protocol):
    def download(self, repo_path: str, ref: str, target_path: str) -> None: ...


def resolve_script_dependencies(script: str, context: ConfigurationContext) -> List[Service]:
    """
    Returns the context's services referenced by ``script``, sorted by name.
    References to unknown services are ignored.

    :raises StructuralConfigError: If a referenced service has no git source.
    """
    services = []
    for name in TemplateVariableExtractor.extract_service_references(script):
        service = context.get_service(name)
        if service is None:
            logger.debug("Script references unknown service '%s'", name)
            continue
        if not service.git_repo_path or not service.git_ref:
            raise StructuralConfigError(f"git repository path or ref is empty for service '{name}'")
        services.append(service)
    return services


def checkout_script_dependencies(script: str, context: ConfigurationContext,
                                 scm: SourceControl) -> List[Service]:
    """
    Checks out every service the script refers to into its derived path.

    :return: The services that were checked out.
    """
    services = resolve_script_dependencies(script, context)
    for service in services:
        logger.info("Updating %s (%s) in %s", service.name, service.git_ref, service.path)
        with collaborator_call("checkout", f"{service.git_repo_path}@{service.git_ref}"):
            scm.download(service.git_repo_path, service.git_ref, service.path)
    return services
