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
Unit tests for the values exposed to templates.
"""
from dx.MODELS.config import ConfigurationContext, Secret, Service
from dx.RESOLVERS.template_values import build_services_map, build_template_values


def test_services_map():
    context = ConfigurationContext(name="acme", services=[
        Service(name="api", git_ref="main", path="/home/u/.dx/acme/api/abc"),
        Service(name="charts-only"),
        Service(name="pinned", git_ref="v1"),
    ])
    assert build_services_map(context) == {
        "api": {"path": "/home/u/.dx/acme/api/abc", "gitRef": "main"},
        "pinned": {"gitRef": "v1"},
    }


def test_template_values(resolver, write_config, make_service):
    write_config({"contexts": [{"name": "acme", "services": [
        make_service("api", gitRepoPath="api-repo", gitRef="main"),
    ]}]})
    context = resolver.load().get_context("acme")
    secrets = [
        Secret(key="database.password", value="p"),
        Secret(key="database.user", value="u"),
        Secret(key="TOKEN", value="t"),
    ]

    values = build_template_values(context, secrets)

    assert values["Secrets"] == {"database": {"password": "p", "user": "u"}, "TOKEN": "t"}
    assert values["Services"]["api"]["path"] == context.services[0].path


def test_legacy_conflicts_do_not_crash():
    secrets = [Secret(key="db", value="1"), Secret(key="db.password", value="2")]
    values = build_template_values(ConfigurationContext(name="acme"), secrets)
    assert values["Secrets"] == {"db": "1"}
