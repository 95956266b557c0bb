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
Unit tests for static template variable extraction.
"""
import pytest
from dx.MODELS.config import ConfigurationContext, DockerImage, Service
from dx.UTILS.template_extractor import TemplateVariableExtractor


class TestExtractVariables:
    """Tests for TemplateVariableExtractor.extract_variables."""

    def test_secret(self):
        result = TemplateVariableExtractor.extract_variables("--set=password={{.Secrets.DB_PASSWORD}}")
        assert result["Secrets"] == ["DB_PASSWORD"]
        assert "Services" not in result

    def test_nested_secret_key_is_whole_path(self):
        result = TemplateVariableExtractor.extract_variables("{{.Secrets.db.password}}")
        assert result["Secrets"] == ["db.password"]

    def test_service_keeps_first_segment(self):
        result = TemplateVariableExtractor.extract_variables("cd {{.Services.api.path}} && make")
        assert result["Services"] == ["api"]

    def test_service_deep_path(self):
        result = TemplateVariableExtractor.extract_variables("{{ .Services.api.config.port }}")
        assert result["Services"] == ["api"]

    def test_quoted_service_segment(self):
        result = TemplateVariableExtractor.extract_variables('{{.Services."my-service".path}}')
        assert result["Services"] == ["my-service"]

    @pytest.mark.parametrize("template", [
        "{{- .Secrets.DB_PASSWORD -}}",
        "{{-.Secrets.DB_PASSWORD-}}",
        "{{ .Secrets.DB_PASSWORD }}",
        "{{ .Secrets.DB_PASSWORD | quote }}",
    ])
    def test_trim_markers_and_pipelines(self, template):
        result = TemplateVariableExtractor.extract_variables(template)
        assert result["Secrets"] == ["DB_PASSWORD"]

    @pytest.mark.parametrize("template", [
        '{{ (index .Services "my-service").path }}',
        "{{ (index .Services 'my-service').path }}",
        "{{ (index .Services `my-service`).path }}",
    ])
    def test_index_function(self, template):
        result = TemplateVariableExtractor.extract_variables(template)
        assert result["Services"] == ["my-service"]

    def test_index_function_secret(self):
        result = TemplateVariableExtractor.extract_variables("{{ (index .Secrets 'api-key') }}")
        assert result["Secrets"] == ["api-key"]

    def test_sorted_and_deduplicated(self):
        template = "{{.Secrets.ZETA}} {{.Secrets.ALPHA}} {{.Secrets.ZETA}} {{.Services.web.path}} {{.Services.api.path}}"
        result = TemplateVariableExtractor.extract_variables(template)
        assert result == {"Secrets": ["ALPHA", "ZETA"], "Services": ["api", "web"]}

    def test_order_independent(self):
        a = TemplateVariableExtractor.extract_variables("{{.Secrets.B}} {{.Secrets.A}}")
        b = TemplateVariableExtractor.extract_variables("{{.Secrets.A}} {{.Secrets.B}} {{.Secrets.A}}")
        assert a == b

    def test_mixed_forms_deduplicate(self):
        template = '{{.Services.api.path}} {{ (index .Services "api").gitRef }}'
        assert TemplateVariableExtractor.extract_variables(template)["Services"] == ["api"]

    @pytest.mark.parametrize("template", ["", "plain text", "{{ .Name }}", "{ .Secrets.X }"])
    def test_no_references(self, template):
        assert TemplateVariableExtractor.extract_variables(template) == {}

    @pytest.mark.parametrize("template", ['{{.Services."".path}}', "{{.Services..path}}"])
    def test_empty_service_name_ignored(self, template):
        assert TemplateVariableExtractor.extract_variables(template) == {}


class TestExtractSecretKeys:
    """Tests for TemplateVariableExtractor.extract_secret_keys."""

    def test_all_sources(self):
        context = ConfigurationContext(
            name="acme",
            scripts={"test": "TOKEN={{.Secrets.SCRIPT_SECRET}} ./test.sh"},
            services=[Service(
                name="api",
                helm_args=["--set=dbPass={{.Secrets.HELM_SECRET}}"],
                docker_images=[DockerImage(name="api", build_args=["TOKEN={{.Secrets.BUILD_SECRET}}"])],
            )],
        )
        assert TemplateVariableExtractor.extract_secret_keys(context) == [
            "BUILD_SECRET", "HELM_SECRET", "SCRIPT_SECRET"
        ]

    def test_deduplicated_across_sources(self):
        context = ConfigurationContext(
            name="acme",
            scripts={"a": "{{.Secrets.SHARED}}", "b": "{{.Secrets.SHARED}}"},
            services=[Service(name="api", helm_args=["--set=s={{.Secrets.SHARED}}"])],
        )
        assert TemplateVariableExtractor.extract_secret_keys(context) == ["SHARED"]

    def test_end_to_end_sorted(self):
        context = ConfigurationContext(
            name="acme", scripts={"deploy": "{{.Secrets.DB_PASSWORD}} {{.Secrets.API_KEY}}"}
        )
        assert TemplateVariableExtractor.extract_secret_keys(context) == ["API_KEY", "DB_PASSWORD"]

    def test_empty_context(self):
        assert TemplateVariableExtractor.extract_secret_keys(ConfigurationContext(name="acme")) == []


def test_extract_service_references():
    refs = TemplateVariableExtractor.extract_service_references(
        "cd {{.Services.web.path}} && cd {{.Services.api.path}} && echo {{.Secrets.X}}"
    )
    assert refs == ["api", "web"]
