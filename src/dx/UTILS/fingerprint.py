"""
Fingerprinting of the local routing table.

The fingerprint is stored as a label on the deployed dev proxy; comparing it
with a freshly computed one tells whether the proxy must be regenerated.
"""
import hashlib
import json
import logging
from typing import Any, Dict, List, Sequence

from ..MODELS.config import LocalService

logger = logging.getLogger(__name__)

# Kubernetes label values are limited to 63 characters.
FINGERPRINT_LENGTH = 62

# Escaping applied to <, >, & and the Unicode line separators by the encoder
# that produced the fingerprints already stored on deployed proxies.
_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _serialize(local_services: Sequence[LocalService]) -> str:
    records: List[Dict[str, Any]] = []
    for service in local_services:
        selector = None
        if service.selector is not None:
            selector = {k: service.selector[k] for k in sorted(service.selector)}
        records.append({
            "Name": service.name,
            "LocalPort": service.local_port,
            "KubernetesPort": service.kubernetes_port,
            "HealthCheckPath": service.health_check_path,
            "Selector": selector,
        })
    encoded = json.dumps(records, separators=(",", ":"), ensure_ascii=False)
    for char, escape in _HTML_ESCAPES.items():
        encoded = encoded.replace(char, escape)
    return encoded


def fingerprint(local_services: Sequence[LocalService]) -> str:
    """
    Computes a 62-character hex fingerprint of the ordered routing table.

    The serialization keeps list order, so reordering entries changes the
    fingerprint.
    """
    digest = hashlib.sha256(_serialize(local_services).encode("utf-8")).hexdigest()
    return digest[:FINGERPRINT_LENGTH]


def should_rebuild(current: str, stored: str) -> bool:
    """
    :param current: Fingerprint of the routing table about to be deployed.
    :param stored: Fingerprint found on the deployed proxy, empty if none is deployed.
    :return: True when nothing is deployed yet or the fingerprints differ.
    """
    if not stored:
        logger.debug("No dev proxy fingerprint stored, rebuild required")
        return True
    if stored != current:
        logger.debug("Dev proxy fingerprint changed: %s -> %s", stored, current)
        return True
    return False
