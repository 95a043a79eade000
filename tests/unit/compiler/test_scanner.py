"""Unit tests for the two-phase declaration scanner."""

import ast
import sys

import pytest

from declmcp.logic.compiler.core.scanner import contract_of
from declmcp.logic.compiler.models.binding import BindingKind
from declmcp.logic.compiler.models.contract_kind import ContractKind
from declmcp.logic.compiler.models.declarations import AuthType
from declmcp.logic.compiler.models.diagnostics import DiagnosticKind

TOOLS = '''
class PingTool(ITool):
    name: Literal["ping"]
    description: Literal["Ping"]

class EchoTool(ITool):
    name: Literal["echo"]
    description: Literal["Echo"]
'''


class TestContractRecognition:
    """Test which classes count as declarations."""

    def _contract(self, source: str):
        return contract_of(ast.parse(source).body[0])

    def test_plain_subscripted_and_attribute_bases(self):
        assert self._contract("class A(ITool): pass")[1] == ContractKind.TOOL
        assert self._contract("class A(ITool[P, R]): pass")[1] == ContractKind.TOOL
        assert self._contract("class A(contracts.IResource): pass")[1] == ContractKind.RESOURCE

    def test_generic_arguments(self):
        name, kind, args = self._contract("class A(ITool[P, R]): pass")
        assert name == "ITool"
        assert [arg.id for arg in args] == ["P", "R"]

    def test_specialized_auth_contracts(self):
        assert self._contract("class A(IOAuthAuth): pass")[1] == ContractKind.AUTH

    def test_unrelated_class(self):
        assert self._contract("class A(TypedDict): pass") is None

    def test_indirect_base_not_recognized(self, scan_text):
        """Test only direct bases are contracts."""
        scan = scan_text('''
class BaseTool(ITool):
    name: Literal["base"]
    description: Literal["Base"]

class DerivedTool(BaseTool):
    name: Literal["derived"]
    description: Literal["Derived"]
''')
        assert [d.declared_name for d in scan.declarations] == ["BaseTool"]


class TestReferenceResolution:
    """Test phase 2 cross references."""

    def test_server_auth_reference_resolved_regardless_of_order(self, scan_text):
        scan = scan_text('''
class AppServer(IServer):
    name: Literal["app"]
    description: Literal["App"]
    auth: TeamAuth

class TeamAuth(IApiKeyAuth):
    headerName: Literal["X-Team-Key"]
''')
        assert scan.server.auth_ref == "TeamAuth"
        assert scan.server.auth.type == AuthType.API_KEY
        assert scan.server.auth.header_name == "X-Team-Key"
        assert scan.diagnostics == []

    def test_unresolved_auth_reference(self, scan_text):
        scan = scan_text('''
class AppServer(IServer):
    name: Literal["app"]
    description: Literal["App"]
    auth: MissingAuth
''')
        assert scan.server.auth is None
        assert [d.kind for d in scan.diagnostics] == [DiagnosticKind.UNRESOLVED_AUTH_REFERENCE]

    def test_router_tools_by_class_and_name(self, scan_text):
        scan = scan_text('''
class UtilityRouter(IToolRouter):
    description: Literal["Utilities"]
    tools: tuple[PingTool, Literal["echo"]]
''' + TOOLS)
        router = scan.declarations_of(ContractKind.ROUTER)[0]
        assert router.capability_name == "utility_router"
        assert router.tools == ["ping", "echo"]
        assert scan.diagnostics == []

    def test_router_unknown_tool(self, scan_text):
        scan = scan_text(TOOLS + '''
class UtilityRouter(IToolRouter):
    description: Literal["Utilities"]
    tools: tuple[PingTool, MissingTool]
''')
        router = scan.declarations_of(ContractKind.ROUTER)[0]
        assert router.tools == ["ping"]
        assert [d.kind for d in scan.diagnostics] == [DiagnosticKind.UNRESOLVED_REFERENCE]

    def test_ui_tools(self, scan_text):
        scan = scan_text(TOOLS + '''
class Panel(IUI):
    uri: Literal["ui://panel"]
    name: Literal["Panel"]
    html: Literal["<div></div>"]
    tools: tuple[Literal["ping"], EchoTool]
''')
        assert scan.declarations_of(ContractKind.UI)[0].tools == ["ping", "echo"]

    def test_second_server_ignored(self, scan_text):
        scan = scan_text('''
class FirstServer(IServer):
    name: Literal["first"]
    description: Literal["First"]

class SecondServer(IServer):
    name: Literal["second"]
    description: Literal["Second"]
''')
        assert scan.server.name == "first"
        assert [d.kind for d in scan.diagnostics] == [DiagnosticKind.DUPLICATE_CAPABILITY]


class TestContainerSelection:
    """Test implementation container discovery."""

    def test_primary_export_wins(self, scan_text):
        scan = scan_text('''
class WeatherService:
    def ping(self): ...

class Implementation:
    def ping(self): ...

__default__ = Implementation
''')
        assert scan.container.owner == "Implementation"
        assert scan.container.binding_kind == BindingKind.CLASS_PROPERTY

    def test_annotated_primary_export(self, scan_text):
        scan = scan_text('''
class WeatherService:
    def ping(self): ...

class Implementation:
    def ping(self): ...

__default__: type = Implementation
''')
        assert scan.container.owner == "Implementation"

    def test_class_extending_server(self, scan_text):
        scan = scan_text('''
class WeatherService:
    def ping(self): ...

class App(IServer):
    name: Literal["app"]
    description: Literal["App"]

class AppImplementation(App):
    def ping(self): ...
''')
        assert scan.container.owner == "AppImplementation"

    def test_first_suffixed_class(self, scan_text):
        scan = scan_text('''
class WeatherParams(TypedDict):
    city: str

class WeatherService:
    def getWeather(self, params): ...

class BackupService:
    pass
''')
        assert scan.container.owner == "WeatherService"
        assert "getWeather" in scan.container.bindings

    def test_no_container(self, scan_text):
        scan = scan_text('''
def ping():
    return "pong"
''')
        assert scan.container is None
        assert "ping" in scan.module.bindings
        assert scan.module.binding_kind == BindingKind.CONST

    def test_module_bindings_classified(self, scan_text):
        scan = scan_text('''
async def fetchData(params):
    return {}

greet = lambda params: "hi"
VERSION = "1.0"
alias = fetchData
''')
        bindings = scan.module.bindings
        assert bindings["fetchData"].is_async is True
        assert bindings["greet"].callable is True
        assert bindings["VERSION"].callable is False
        assert bindings["alias"].callable is True
        assert bindings["alias"].is_async is True

    def test_module_classes_are_callable(self, scan_text):
        scan = scan_text('''
class getWeather:
    def __call__(self, params):
        return {}
''')
        assert scan.module.bindings["getWeather"].callable is True

    @pytest.mark.skipif(sys.version_info < (3, 12), reason="type statements need Python 3.12")
    def test_type_statement_alias(self, compile_text):
        result = compile_text('''
type WeatherArgs = {"city": str}

class GetWeatherTool(ITool):
    name: Literal["get_weather"]
    description: Literal["Weather"]
    params: WeatherArgs

def getWeather(params):
    return {}
''')
        assert not result.has_errors
        validator = result.registry.get(ContractKind.TOOL, "get_weather").validator("params")
        assert validator.is_valid({"city": "Oslo"})
        assert not validator.is_valid({})
