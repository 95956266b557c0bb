"""
Overlay merge of an imported base context with the inline context that imports it.

Policy:
    - scalar fields: the overlay wins when it is non-empty
    - scripts: key-wise union, overlay wins on collision
    - services and docker images: matched by name, merged field by field
    - remote images, build arguments: overlay entries are appended
    - local services: overlay entries are appended, no de-duplication
    - overlay services without a matching base service are dropped

Inputs are never mutated; new models are returned.
"""
import logging
from typing import List

from ..MODELS.config import ConfigurationContext, DockerImage, Service

logger = logging.getLogger(__name__)


def _pick(base: str, overlay: str) -> str:
    return overlay if overlay else base


def merge_contexts(base: ConfigurationContext, overlay: ConfigurationContext) -> ConfigurationContext:
    """
    Merges ``overlay`` on top of ``base``.

    :param base: The context read from the import document.
    :param overlay: The inline context from the root document.
    :return: A new merged context.
    """
    scripts = dict(base.scripts)
    scripts.update(overlay.scripts)

    services: List[Service] = [s.model_copy(deep=True) for s in base.services]
    base_names = {s.name for s in base.services}
    for overlay_svc in overlay.services:
        if overlay_svc.name not in base_names:
            logger.warning(
                "Service '%s' is not defined in the imported context '%s' and is ignored",
                overlay_svc.name, base.name,
            )
            continue
        for i, base_svc in enumerate(services):
            if base_svc.name == overlay_svc.name:
                services[i] = overlay_service(base_svc, overlay_svc)

    return base.model_copy(update={
        "name": _pick(base.name, overlay.name),
        "scripts": scripts,
        "services": services,
        "local_services": [
            ls.model_copy(deep=True) for ls in base.local_services + overlay.local_services
        ],
    })


def overlay_service(base: Service, overlay: Service) -> Service:
    """
    Merges one overlay service into its base counterpart.
    """
    images = [img.model_copy(deep=True) for img in base.docker_images]
    for overlay_img in overlay.docker_images:
        for i, base_img in enumerate(images):
            if base_img.name == overlay_img.name:
                images[i] = overlay_docker_image(base_img, overlay_img)

    return base.model_copy(update={
        "name": _pick(base.name, overlay.name),
        "git_repo_path": _pick(base.git_repo_path, overlay.git_repo_path),
        "git_ref": _pick(base.git_ref, overlay.git_ref),
        "helm_repo_path": _pick(base.helm_repo_path, overlay.helm_repo_path),
        "helm_branch": _pick(base.helm_branch, overlay.helm_branch),
        "helm_chart_relative_path": _pick(base.helm_chart_relative_path, overlay.helm_chart_relative_path),
        "docker_images": images,
        "remote_images": base.remote_images + overlay.remote_images,
    })


def overlay_docker_image(base: DockerImage, overlay: DockerImage) -> DockerImage:
    return base.model_copy(update={
        "name": _pick(base.name, overlay.name),
        "git_repo_path": _pick(base.git_repo_path, overlay.git_repo_path),
        "git_ref": _pick(base.git_ref, overlay.git_ref),
        "dockerfile_path": _pick(base.dockerfile_path, overlay.dockerfile_path),
        "dockerfile_override": _pick(base.dockerfile_override, overlay.dockerfile_override),
        "build_args": base.build_args + overlay.build_args,
    })
