"""Test configuration and fixtures for declmcp tests."""

import ast
import tempfile
import textwrap
from pathlib import Path
from typing import Callable, Generator

import pytest

from declmcp.core.config import CompilerConfig
from declmcp.logic.compiler.core.compiler import CompilationResult, compile_source
from declmcp.logic.compiler.core.scanner import DeclarationScanner, ScanResult
from declmcp.logic.compiler.core.type_builder import TypeBuilder, TypeTable

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding declaration modules used as compiler input."""
    return FIXTURES_DIR


@pytest.fixture
def test_config() -> CompilerConfig:
    """Configuration isolated from the environment and any .env file."""
    return CompilerConfig(
        _env_file=None,
        debug=False,
        log_level="WARNING",
        warn_on_any_fields=True,
        warn_on_unused_implementations=False,
    )


@pytest.fixture
def compile_text(test_config: CompilerConfig) -> Callable[[str], CompilationResult]:
    """Compile an indented source snippet."""
    def _compile(source: str, config: CompilerConfig = None) -> CompilationResult:
        return compile_source(textwrap.dedent(source), filename="<test>", config=config or test_config)
    return _compile


@pytest.fixture
def scan_text(test_config: CompilerConfig) -> Callable[[str], ScanResult]:
    """Run only the scanner over an indented source snippet."""
    def _scan(source: str) -> ScanResult:
        module = ast.parse(textwrap.dedent(source))
        return DeclarationScanner(test_config).scan(module, "<test>")
    return _scan


@pytest.fixture
def build_type() -> Callable[..., object]:
    """Build the TypeNode of an annotation expression, with optional module context."""
    def _build(annotation: str, module: str = ""):
        table = TypeTable()
        for stmt in ast.parse(textwrap.dedent(module)).body:
            if isinstance(stmt, ast.ClassDef):
                table.classes[stmt.name] = stmt
            elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name) and stmt.value is not None:
                table.aliases[stmt.target.id] = stmt.value
        expr = ast.parse(annotation, mode="eval").body
        return TypeBuilder(table).build(expr)
    return _build
