"""
Static discovery of the variables referenced by template strings.

Templates are never executed here; two small patterns recognize the only
reference forms the templates use.
"""
import re
from typing import Dict, Iterable, List, Set

from ..MODELS.config import ConfigurationContext

SECRETS = "Secrets"
SERVICES = "Services"

# {{.Secrets.KEY}}, {{- .Services.api.path -}}, {{.Services."my-service".path}},
# {{ .Secrets.KEY | quote }}
# Group 1: kind, Group 2: dotted path (quoted segments allowed)
DOTTED_REFERENCE = re.compile(r'\{\{-?\s*\.(\w+)\.((?:"[^"]*"|[\w.])+)', re.ASCII)

# {{ (index .Services "my-service").path }}, {{ (index .Secrets 'key') }}, backticks
# Group 1: kind, Group 2: unquoted key
INDEX_REFERENCE = re.compile(r'\{\{-?\s*\(index\s+\.(\w+)\s+["\'`]([^"\'`]+)["\'`]\)', re.ASCII)


class TemplateVariableExtractor:
    """
    Finds which secret keys and service names a template refers to.
    """
    @staticmethod
    def extract_variables(template: str) -> Dict[str, List[str]]:
        """
        Extracts variable references grouped by kind.

        For Secrets the whole dotted path is the key ("db.password" from
        ``{{.Secrets.db.password}}``). For Services only the first segment is
        the name ("api" from ``{{.Services.api.path}}``).

        :param template: The template text.
        :return: Kind -> sorted, de-duplicated, non-empty names. Kinds without any
                 reference are absent.
        """
        found: Dict[str, Set[str]] = {}

        for match in DOTTED_REFERENCE.finditer(template):
            kind, full_path = match.group(1), match.group(2)
            if kind == SECRETS:
                key = full_path
            else:
                key = full_path.split(".")[0].strip('"')
            if key:
                found.setdefault(kind, set()).add(key)

        for match in INDEX_REFERENCE.finditer(template):
            found.setdefault(match.group(1), set()).add(match.group(2))

        return {kind: sorted(keys) for kind, keys in found.items()}

    @staticmethod
    def extract_secret_keys(context: ConfigurationContext) -> List[str]:
        """
        Returns every secret key referenced by the scripts, Helm arguments and
        build arguments of a context, sorted.
        """
        keys: Set[str] = set()
        for template in _context_templates(context):
            keys.update(TemplateVariableExtractor.extract_variables(template).get(SECRETS, []))
        return sorted(keys)

    @staticmethod
    def extract_service_references(template: str) -> List[str]:
        return TemplateVariableExtractor.extract_variables(template).get(SERVICES, [])


def _context_templates(context: ConfigurationContext) -> Iterable[str]:
    yield from context.scripts.values()
    for service in context.services:
        yield from service.helm_args
        for image in service.docker_images:
            yield from image.build_args
