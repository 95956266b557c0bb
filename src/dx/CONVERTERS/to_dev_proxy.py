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
Converters generating the dev proxy configuration from the local routing table.
"""
from dataclasses import dataclass
from typing import Any, Dict

import yaml
from jinja2 import Environment

from ..MODELS.config import ConfigurationContext
from ..UTILS.fingerprint import fingerprint

FRONTEND_START_PORT = 8080
PROXY_START_PORT = 18080

HAPROXY_TEMPLATE = """
# Generated by dx for context {{ name }}
# checksum: {{ checksum }}
global
    log stdout format raw local0

defaults
    mode http
    log global
    timeout connect 5s
    timeout client 60s
    timeout server 60s
{% for svc in services %}
frontend {{ svc.name }}_frontend
    bind *:{{ svc.frontend_port }}
    default_backend {{ svc.name }}_backend

backend {{ svc.name }}_backend
{%- if svc.health_check_path %}
    option httpchk GET {{ svc.health_check_path }}
{%- endif %}
    server local host.docker.internal:{{ svc.local_port }} check
    server cluster 127.0.0.1:{{ svc.proxy_port }} check backup
{% endfor %}
"""

CHART_TEMPLATE = """
apiVersion: v2
name: dev-proxy
description: Local routing proxy for context {{ name }}
type: application
version: 0.1.0
"""

DEPLOYMENT_TEMPLATE = """
apiVersion: apps/v1
kind: Deployment
metadata:
  name: dev-proxy
  labels:
    app: dev-proxy
    dx.checksum: "{{ checksum }}"
spec:
  replicas: 1
  selector:
    matchLabels:
      app: dev-proxy
  template:
    metadata:
      labels:
        app: dev-proxy
        dx.checksum: "{{ checksum }}"
    spec:
      containers:
        - name: haproxy
          image: henriq/haproxy-{{ name }}
          ports:
{%- for svc in services %}
            - name: {{ svc.name[:15] }}
              containerPort: {{ svc.frontend_port }}
{%- endfor %}
{%- for svc in services %}
---
apiVersion: v1
kind: Service
metadata:
  name: {{ svc.name }}-dev-proxy
spec:
  selector:
{{ svc.selector | to_yaml | indent(4, True) }}
  ports:
    - port: {{ svc.proxy_port }}
      targetPort: {{ svc.kubernetes_port }}
{%- endfor %}
"""


def _to_yaml(value: Any) -> str:
    return yaml.safe_dump(value, default_flow_style=False, sort_keys=True).rstrip("\n")


@dataclass
class DevProxyConfigs:
    """All files generated for one context's dev proxy."""
    checksum: str
    haproxy_config: str
    helm_chart: str
    helm_deployment: str


class DevProxyConfigGenerator:
    """
    Renders the HAProxy configuration and the Helm chart of the dev proxy.
    Pure: no I/O.
    """
    def __init__(self):
        env = Environment(keep_trailing_newline=True)
        env.filters["to_yaml"] = _to_yaml
        self.haproxy_template = env.from_string(HAPROXY_TEMPLATE)
        self.chart_template = env.from_string(CHART_TEMPLATE)
        self.deployment_template = env.from_string(DEPLOYMENT_TEMPLATE)

    def build_values(self, context: ConfigurationContext) -> Dict[str, Any]:
        """
        Assigns consecutive frontend and proxy ports to the local services, in order.
        """
        services = []
        for i, local in enumerate(context.local_services):
            services.append({
                "name": local.name,
                "frontend_port": FRONTEND_START_PORT + i,
                "proxy_port": PROXY_START_PORT + i,
                "kubernetes_port": local.kubernetes_port,
                "local_port": local.local_port,
                "health_check_path": local.health_check_path,
                "selector": local.selector or {},
            })
        return {
            "name": context.name,
            "services": services,
            "checksum": fingerprint(context.local_services),
        }

    def generate(self, context: ConfigurationContext) -> DevProxyConfigs:
        values = self.build_values(context)
        return DevProxyConfigs(
            checksum=values["checksum"],
            haproxy_config=self.haproxy_template.render(**values).lstrip(),
            helm_chart=self.chart_template.render(**values).lstrip(),
            helm_deployment=self.deployment_template.render(**values).lstrip(),
        )
