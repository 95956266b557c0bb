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
Resolution of the root document into validated configuration contexts.
"""
import logging
import os
from typing import Optional

from ..MODELS.config import (
    ALL_PROFILE,
    DEFAULT_PROFILE,
    Config,
    ConfigurationContext,
    Service,
    create_default_config,
)
from ..PARSERS.config_parser import ConfigParser
from ..STORAGE.file_system import LocalFileSystem, READ_WRITE
from ..UTILS.name_validator import validate_context_name
from ..UTILS.path_deriver import PathDeriver
from ..errors import CollaboratorError, StructuralConfigError
from .config_merger import merge_contexts

logger = logging.getLogger(__name__)

CONFIG_FILE_PATH = "~/.dx-config.yaml"
CURRENT_CONTEXT_PATH = "~/.dx/current-context"
STATE_DIR = ".dx"


class ConfigResolver:
    """
    Loads the root document, merges imports, derives checkout paths and
    validates the result.

    The first successful ``load()`` is cached on the instance; later calls
    return the same object without touching storage. Create one resolver per
    process and share it.
    """
    def __init__(self, file_system: LocalFileSystem, parser: Optional[ConfigParser] = None):
        """
        :param file_system: Storage the root document and markers are read from.
        :param parser: Parser for YAML documents.
        """
        self.file_system = file_system
        self.parser = parser or ConfigParser()
        self.home = file_system.home_dir()
        self.path_deriver = PathDeriver(os.path.join(self.home, STATE_DIR))
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """
        Returns the resolved configuration.

        :raises CollaboratorError: If the root document cannot be read.
        :raises StructuralConfigError: If it is malformed or invalid.
        """
        if self._config is not None:
            logger.debug("Using cached configuration")
            return self._config

        content = self.file_system.read_file(CONFIG_FILE_PATH).decode("utf-8")
        config = self.parser.parse_from_string(content, source=CONFIG_FILE_PATH)

        contexts = []
        for context in config.contexts:
            if context.import_path is not None:
                context = self._apply_import(context)
            contexts.append(self._resolve_context(context))
        config = config.model_copy(update={"contexts": contexts})

        try:
            config.validate_structure()
        except StructuralConfigError as e:
            raise StructuralConfigError(f"config validation failed: {e}") from e

        self._config = config
        return config

    def _apply_import(self, context: ConfigurationContext) -> ConfigurationContext:
        """
        Merges the context on top of its import document. A missing or broken
        import is reported and the inline definition is used alone.
        """
        import_path = self.expand_import_path(context.import_path)
        try:
            base = self.parser.parse_context(import_path)
        except (OSError, UnicodeDecodeError, StructuralConfigError) as e:
            logger.warning("Failed to import %s for context '%s': %s", import_path, context.name, e)
            return context
        return merge_contexts(base, context)

    def expand_import_path(self, path: str) -> str:
        """
        Import paths may point anywhere; only a leading "~" is expanded.
        """
        if path == "~":
            return self.home
        if path.startswith("~/") or path.startswith("~\\"):
            return os.path.join(self.home, path[2:])
        return path

    def _resolve_context(self, context: ConfigurationContext) -> ConfigurationContext:
        services = [self._resolve_service(context.name, s) for s in context.services]
        return context.model_copy(update={"services": services})

    def _resolve_service(self, context_name: str, service: Service) -> Service:
        profiles = list(service.profiles) or [DEFAULT_PROFILE]
        if ALL_PROFILE not in profiles:
            profiles.append(ALL_PROFILE)

        images = []
        for image in service.docker_images:
            git_repo_path = image.git_repo_path or service.git_repo_path
            git_ref = image.git_ref or service.git_ref
            images.append(image.model_copy(update={
                "git_repo_path": git_repo_path,
                "git_ref": git_ref,
                "path": self.path_deriver.source_path(context_name, service.name, git_repo_path, git_ref),
            }))

        path = ""
        if service.git_repo_path and service.git_ref:
            path = self.path_deriver.source_path(
                context_name, service.name, service.git_repo_path, service.git_ref
            )

        helm_path = self.path_deriver.helm_path(context_name, service.helm_repo_path, service.helm_branch)
        logger.debug("Service '%s/%s': path=%s helm_path=%s", context_name, service.name, path, helm_path)

        return service.model_copy(update={
            "profiles": profiles,
            "docker_images": images,
            "path": path,
            "helm_path": helm_path,
        })

    def config_exists(self) -> bool:
        return self.file_system.file_exists(CONFIG_FILE_PATH)

    def save_config(self, config: Config) -> None:
        """
        Writes a configuration back to the root document. The cached
        configuration is left untouched; a new process picks up the change.
        """
        self.file_system.write_file(CONFIG_FILE_PATH, self.parser.dump(config).encode("utf-8"), READ_WRITE)

    def init_config(self) -> None:
        """
        Writes the default root document.

        :raises StructuralConfigError: If a root document already exists.
        """
        if self.config_exists():
            raise StructuralConfigError(f"configuration file already exists at {CONFIG_FILE_PATH}")
        self.save_config(create_default_config())

    def load_current_context_name(self) -> str:
        content = self.file_system.read_file(CURRENT_CONTEXT_PATH).decode("utf-8")
        return validate_context_name(content.strip())

    def save_current_context_name(self, name: str) -> None:
        validate_context_name(name)
        self.file_system.write_file(CURRENT_CONTEXT_PATH, name.encode("utf-8"), READ_WRITE)

    def load_current_context(self) -> ConfigurationContext:
        """
        :raises ContextNotFoundError: If the current context is not in the configuration.
        """
        name = self.load_current_context_name()
        return self.load().get_context(name)

    def load_env_key(self, context_name: str) -> str:
        validate_context_name(context_name)
        path = f"~/{STATE_DIR}/{context_name}/env-key"
        if not self.file_system.file_exists(path):
            raise CollaboratorError(
                "read env-key", path, FileNotFoundError("env-key does not exist, see operation 'dx gen-env-key'")
            )
        return self.file_system.read_file(path).decode("utf-8")
