"""Integration tests for compiling declaration modules from disk.

Each test compiles a module under tests/fixtures end to end: parse, scan,
link and assemble, then inspects the registry and the diagnostics.
"""

import pytest

from declmcp import compile_file, load_registry, save_registry
from declmcp.lib.exceptions import SourceParseError, StructuralContradictionError
from declmcp.logic.compiler.models.binding import BindingKind, MatchStrategy
from declmcp.logic.compiler.models.contract_kind import ContractKind
from declmcp.logic.compiler.models.declarations import AuthType, Transport
from declmcp.logic.compiler.models.diagnostics import DiagnosticKind, DiagnosticSeverity

pytestmark = pytest.mark.integration


class TestWeatherServer:
    """Compile a complete server module."""

    @pytest.fixture
    def result(self, fixtures_dir, test_config):
        return compile_file(fixtures_dir / "weather_server.py", config=test_config)

    def test_compiles_without_errors(self, result):
        assert not result.has_errors
        assert result.warnings == []

    def test_server_metadata(self, result):
        server = result.registry.server
        assert server.name == "weather-server"
        assert server.version == "1.2.0"
        assert server.transport == Transport.HTTP
        assert server.port == 3000
        assert server.auth.type == AuthType.API_KEY
        assert server.auth.header_name == "X-Team-Key"
        assert server.auth.keys[0].key == "team-secret"

    def test_server_name_normalized(self, result):
        normalized = result.diagnostics_of(DiagnosticKind.NAME_NORMALIZED)
        assert len(normalized) == 1
        assert "weather-server" in normalized[0].message

    def test_static_resource_has_no_binding(self, result):
        entry = result.registry.get(ContractKind.RESOURCE, "config://server")
        assert entry.dynamic is False
        assert entry.binding is None
        assert entry.declaration.data == {"apiVersion": "2.0"}
        assert entry.declaration.mime_type == "application/json"

    def test_tool_bound_to_container(self, result):
        entry = result.registry.get(ContractKind.TOOL, "get_weather")
        assert entry.dynamic is True
        assert entry.binding.binding_kind == BindingKind.CLASS_PROPERTY
        assert entry.binding.container == "WeatherService"
        assert entry.binding.resolved_name == "getWeather"
        assert entry.binding.is_async is True

    def test_tool_validator(self, result):
        validator = result.registry.get(ContractKind.TOOL, "get_weather").validator("params")
        assert validator.is_valid({"city": "Oslo", "units": "metric"})
        assert validator.is_valid({"city": "Oslo", "units": "metric", "days": 3})
        assert not validator.is_valid({"city": "Oslo", "units": "kelvin"})
        assert not validator.is_valid({"city": "Oslo", "units": "metric", "days": 30})
        assert not validator.is_valid({"units": "metric"})

    def test_decorated_resource_binding(self, result):
        entry = result.registry.get(ContractKind.RESOURCE, "stats://current")
        assert entry.dynamic is True
        assert entry.binding.resolved_name == "stats"
        assert entry.binding.matched_by == MatchStrategy.DECORATOR

    def test_explicit_dynamic_prompt_keeps_template(self, result):
        entry = result.registry.get(ContractKind.PROMPT, "forecast")
        assert entry.dynamic is True
        assert entry.declaration.template == "What is the forecast for {city}?"
        assert entry.binding.resolved_name == "forecast"

    def test_registry_file_round_trip(self, result, temp_dir):
        path = save_registry(result.registry, temp_dir / "weather.registry.json")
        restored = load_registry(path)

        assert restored.server == result.registry.server
        for kind in (ContractKind.TOOL, ContractKind.RESOURCE, ContractKind.PROMPT):
            assert restored.names(kind) == result.registry.names(kind)
        assert [e.binding for e in restored.dynamic_entries()] == [
            e.binding for e in result.registry.dynamic_entries()
        ]


class TestFailingModules:
    """Modules that compile with errors or do not compile at all."""

    def test_missing_implementation(self, fixtures_dir, test_config):
        result = compile_file(fixtures_dir / "missing_impl.py", config=test_config)

        assert result.has_errors
        not_found = result.diagnostics_of(DiagnosticKind.IMPLEMENTATION_NOT_FOUND)
        assert len(not_found) == 1
        assert "getWeather" in not_found[0].message
        assert result.registry.names(ContractKind.TOOL) == []
        assert result.registry.names(ContractKind.RESOURCE) == ["config://server"]

    def test_duplicate_capability(self, fixtures_dir, test_config):
        result = compile_file(fixtures_dir / "duplicates.py", config=test_config)

        entry = result.registry.get(ContractKind.TOOL, "search")
        assert entry.declaration.declared_name == "SearchTool"
        assert len(result.diagnostics_of(DiagnosticKind.DUPLICATE_CAPABILITY)) == 1
        assert not result.has_errors

    def test_ui_with_two_sources_aborts(self, fixtures_dir, test_config):
        with pytest.raises(StructuralContradictionError) as exc_info:
            compile_file(fixtures_dir / "contradiction_ui.py", config=test_config)

        assert exc_info.value.declaration_name == "DashboardUI"
        assert exc_info.value.conflicting_fields == ["html", "external_url"]

        diagnostic = exc_info.value.diagnostic
        assert diagnostic.kind == DiagnosticKind.STRUCTURAL_CONTRADICTION
        assert diagnostic.severity == DiagnosticSeverity.ERROR
        assert diagnostic.declaration_name == "DashboardUI"
        assert diagnostic.line == 8
        assert "html, external_url" in diagnostic.message

    def test_syntax_error(self, fixtures_dir, test_config):
        with pytest.raises(SourceParseError) as exc_info:
            compile_file(fixtures_dir / "broken_syntax.txt", config=test_config)

        assert exc_info.value.details["line"] == 1
        assert exc_info.value.details["filename"].endswith("broken_syntax.txt")


class TestUnusedImplementations:
    """Optional reporting of container members that implement nothing."""

    def test_reported_when_enabled(self, fixtures_dir, test_config):
        config = test_config.model_copy(update={"warn_on_unused_implementations": True})
        result = compile_file(fixtures_dir / "missing_impl.py", config=config)

        unused = result.diagnostics_of(DiagnosticKind.UNUSED_IMPLEMENTATION)
        assert [d.declaration_name for d in unused] == ["WeatherService"]
        assert "fetch" in unused[0].message
