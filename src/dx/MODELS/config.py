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
Models for configuration contexts, services, images and the local routing table.

Field names follow the camelCase keys of the on-disk YAML documents through
aliases. Derived fields (``path``, ``helm_path``) are computed at load time and
never serialized. Numeric YAML scalars in string fields (``helmBranch: 1.0``)
are read as their string form.
"""
from typing import List, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import ContextNotFoundError, StructuralConfigError

DEFAULT_PROFILE = "default"
ALL_PROFILE = "all"


class DockerImage(BaseModel):
    """
    An image built from a git checkout of the owning service (or its own repository).
    """
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    name: str = ""
    dockerfile_path: str = Field(default="", alias="dockerfilePath")
    dockerfile_override: str = Field(default="", alias="dockerfileOverride")
    build_context_relative_path: str = Field(default="", alias="buildContextRelativePath")
    build_args: List[str] = Field(default_factory=list, alias="buildArgs")
    git_repo_path: str = Field(default="", alias="gitRepoPath")
    git_ref: str = Field(default="", alias="gitRef")

    @field_validator("build_args", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value

    # Derived
    path: str = Field(default="", exclude=True)


class Service(BaseModel):
    """
    A deployable service: a Helm chart plus the images it needs.
    """
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    name: str = ""

    # Helm
    helm_repo_path: str = Field(default="", alias="helmRepoPath")
    helm_branch: str = Field(default="", alias="helmBranch")
    helm_chart_relative_path: str = Field(default="", alias="helmChartRelativePath")
    helm_args: List[str] = Field(default_factory=list, alias="helmArgs")
    local_port: Optional[int] = Field(default=None, alias="localPort")

    # Images
    docker_images: List[DockerImage] = Field(default_factory=list, alias="dockerImages")
    remote_images: List[str] = Field(default_factory=list, alias="remoteImages")

    profiles: List[str] = Field(default_factory=list)

    # Source
    git_repo_path: str = Field(default="", alias="gitRepoPath")
    git_ref: str = Field(default="", alias="gitRef")

    # Derived
    path: str = Field(default="", exclude=True)
    helm_path: str = Field(default="", exclude=True)

    @field_validator("helm_args", "docker_images", "remote_images", "profiles", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value


class LocalService(BaseModel):
    """
    One entry of the local routing table served by the dev proxy.
    """
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    name: str = ""
    local_port: int = Field(default=0, alias="localPort")
    kubernetes_port: int = Field(default=0, alias="kubernetesPort")
    health_check_path: str = Field(default="", alias="healthCheckPath")
    selector: Optional[Dict[str, str]] = None


class Secret(BaseModel):
    """
    A stored secret. The key is a dot-segmented hierarchical path.
    """
    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(alias="Key")
    value: str = Field(default="", alias="Value")


class ConfigurationContext(BaseModel):
    """
    A named development environment.
    """
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    name: str = ""
    scripts: Dict[str, str] = Field(default_factory=dict)
    import_path: Optional[str] = Field(default=None, alias="import")
    services: List[Service] = Field(default_factory=list)
    local_services: List[LocalService] = Field(default_factory=list, alias="localServices")

    @field_validator("scripts", mode="before")
    @classmethod
    def _null_scripts_as_empty(cls, value):
        return {} if value is None else value

    @field_validator("services", "local_services", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value

    def get_service(self, name: str) -> Optional[Service]:
        for service in self.services:
            if service.name == name:
                return service
        return None

    def services_for_profile(self, profile: str) -> List[Service]:
        """
        Returns the services tagged with the given profile, in declaration order.
        """
        return [s for s in self.services if profile in s.profiles]


class Config(BaseModel):
    """
    The root document: every context known to the user.
    """
    contexts: List[ConfigurationContext] = Field(default_factory=list)

    @field_validator("contexts", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value

    def context_exists(self, name: str) -> bool:
        return any(c.name == name for c in self.contexts)

    def get_context(self, name: str) -> ConfigurationContext:
        for context in self.contexts:
            if context.name == name:
                return context
        raise ContextNotFoundError(name)

    def validate_structure(self) -> None:
        """
        Checks the structural invariants of every context, service, image and
        local service.

        :raises StructuralConfigError: On the first violation found.
        """
        seen = set()
        for i, ctx in enumerate(self.contexts):
            if not ctx.name:
                raise StructuralConfigError(f"context at index {i} has empty name")
            if ctx.name in seen:
                raise StructuralConfigError(f"context '{ctx.name}' is defined more than once")
            seen.add(ctx.name)

            for j, svc in enumerate(ctx.services):
                _validate_service(ctx.name, j, svc)

            for j, local in enumerate(ctx.local_services):
                if not local.name:
                    raise StructuralConfigError(
                        f"local service at index {j} in context '{ctx.name}' has empty name"
                    )
                if local.kubernetes_port <= 0:
                    raise StructuralConfigError(
                        f"local service '{local.name}' in context '{ctx.name}' has invalid kubernetesPort"
                    )
                if local.selector is None:
                    raise StructuralConfigError(
                        f"local service '{local.name}' in context '{ctx.name}' has empty selector"
                    )

        if not self.contexts:
            raise StructuralConfigError("no contexts defined in configuration")


def _validate_service(context_name: str, index: int, svc: Service) -> None:
    where = f"in context '{context_name}'"
    if not svc.name:
        raise StructuralConfigError(f"service at index {index} {where} has empty name")
    if not svc.helm_repo_path:
        raise StructuralConfigError(f"service '{svc.name}' {where} has empty helmRepoPath")
    if not svc.helm_branch:
        raise StructuralConfigError(f"service '{svc.name}' {where} has empty helmBranch")
    if not svc.helm_chart_relative_path:
        raise StructuralConfigError(f"service '{svc.name}' {where} has empty helmChartRelativePath")

    for k, img in enumerate(svc.docker_images):
        owner = f"for service '{svc.name}' {where}"
        if not img.name:
            raise StructuralConfigError(f"docker image at index {k} {owner} has empty name")
        if not img.dockerfile_path and not img.dockerfile_override.strip():
            raise StructuralConfigError(
                f"docker image '{img.name}' {owner} must have either dockerfilePath or dockerfileOverride"
            )
        if not img.build_context_relative_path:
            raise StructuralConfigError(f"docker image '{img.name}' {owner} has empty buildContextRelativePath")
        if not img.git_repo_path:
            raise StructuralConfigError(f"docker image '{img.name}' {owner} has empty gitRepoPath")
        if not img.git_ref:
            raise StructuralConfigError(f"docker image '{img.name}' {owner} has empty gitRef")

    for k, remote in enumerate(svc.remote_images):
        if not remote:
            raise StructuralConfigError(
                f"remote image at index {k} for service '{svc.name}' {where} is empty"
            )


def create_default_config() -> Config:
    """
    The document written by ``dx init``.
    """
    return Config(
        contexts=[
            ConfigurationContext(
                name="default",
                services=[
                    Service(
                        name="default",
                        docker_images=[
                            DockerImage(
                                name="default",
                                dockerfile_path="Dockerfile",
                                build_context_relative_path=".",
                                git_repo_path="/tmp/bar",
                                git_ref="main",
                            )
                        ],
                        remote_images=["postgres:latest"],
                        helm_repo_path="/tmp/foo",
                        helm_chart_relative_path="helm",
                        helm_branch="local",
                    )
                ],
                local_services=[
                    LocalService(
                        name="default",
                        local_port=8080,
                        kubernetes_port=80,
                        health_check_path="/health",
                        selector={"app": "default"},
                    )
                ],
            )
        ]
    )
