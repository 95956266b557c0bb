"""
Values exposed to templates as ``.Secrets`` and ``.Services``.
"""
from typing import Any, Dict, Iterable

from ..MODELS.config import ConfigurationContext, Secret
from ..MODELS.secret_values import build_secret_tree


def build_services_map(context: ConfigurationContext) -> Dict[str, Dict[str, str]]:
    """
    Maps each service name to its checkout ``path`` and ``gitRef``. Services
    with neither are left out.
    """
    services: Dict[str, Dict[str, str]] = {}
    for service in context.services:
        values = {}
        if service.path:
            values["path"] = service.path
        if service.git_ref:
            values["gitRef"] = service.git_ref
        if values:
            services[service.name] = values
    return services


def build_template_values(context: ConfigurationContext, secrets: Iterable[Secret]) -> Dict[str, Any]:
    return {
        "Secrets": build_secret_tree(secrets).to_plain(),
        "Services": build_services_map(context),
    }
