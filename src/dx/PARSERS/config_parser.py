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
Parsers for DX configuration documents.
"""
import yaml
from typing import Any, Dict
from pydantic import ValidationError

from ..MODELS.config import Config, ConfigurationContext
from ..errors import StructuralConfigError


class ConfigParser:
    """
    Parser for the root document (``~/.dx-config.yaml``) and for import documents.
    """
    def parse(self, config_path: str) -> Config:
        """
        Parses a root document from a path.

        :param config_path: Path to the YAML document.
        :return: The parsed, not yet resolved, configuration.
        """
        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse_from_string(content, source=config_path)

    def parse_from_string(self, content: str, source: str = "<string>") -> Config:
        """
        Parses a root document from a string.

        :param content: YAML content.
        :param source: Name used in error messages.
        :return: The parsed configuration.
        """
        data = self._load_mapping(content, source)
        try:
            return Config.model_validate(data)
        except ValidationError as e:
            raise StructuralConfigError(f"invalid configuration in {source}: {e}") from e

    def parse_context(self, context_path: str) -> ConfigurationContext:
        """
        Parses an import document, which holds a single context at its top level.

        :param context_path: Path to the YAML document.
        :return: The parsed context.
        """
        with open(context_path, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse_context_from_string(content, source=context_path)

    def parse_context_from_string(self, content: str, source: str = "<string>") -> ConfigurationContext:
        data = self._load_mapping(content, source)
        try:
            return ConfigurationContext.model_validate(data)
        except ValidationError as e:
            raise StructuralConfigError(f"invalid configuration context in {source}: {e}") from e

    def dump(self, config: Config) -> str:
        """
        Serializes a configuration back into the on-disk YAML form.
        Derived fields are left out.
        """
        data = config.model_dump(by_alias=True, exclude_none=True)
        return yaml.safe_dump(data, sort_keys=False)

    def _load_mapping(self, content: str, source: str) -> Dict[str, Any]:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise StructuralConfigError(f"failed to parse {source}: {e}") from e
        if not data:
            data = {}
        if not isinstance(data, dict):
            raise StructuralConfigError(
                f"failed to parse {source}: expected a mapping at the top level, got {type(data).__name__}"
            )
        return data
