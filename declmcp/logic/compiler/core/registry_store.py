"""Read and write compiled registries as JSON or YAML files."""

from pathlib import Path
from typing import Union

from declmcp.core.lib_logger import get_component_logger
from declmcp.lib.exceptions import RegistrySerializationError

from ..models.registry import CapabilityRegistry

FORMATS_BY_SUFFIX = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


def registry_format(path: Path) -> str:
    """Serialization format implied by the file suffix."""
    file_format = FORMATS_BY_SUFFIX.get(path.suffix.lower())
    if file_format is None:
        raise RegistrySerializationError(
            f"Unsupported registry file suffix '{path.suffix}'; use .json, .yaml or .yml",
            path=str(path),
        )
    return file_format


def save_registry(registry: CapabilityRegistry, path: Union[str, Path]) -> Path:
    """Write a registry in the format chosen by the file suffix."""
    logger = get_component_logger("compiler.registry_store")
    path = Path(path)
    file_format = registry_format(path)
    text = registry.to_json() if file_format == "json" else registry.to_yaml()

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")

    logger.info(f"Saved registry to {path}", extra={"format": file_format, "capabilities": len(registry)})
    return path


def load_registry(path: Union[str, Path]) -> CapabilityRegistry:
    """
    Read a registry written by save_registry.

    Raises:
        RegistrySerializationError: If the file is missing, has an unknown
            suffix or does not contain a registry
    """
    logger = get_component_logger("compiler.registry_store")
    path = Path(path)
    file_format = registry_format(path)
    if not path.exists():
        raise RegistrySerializationError(f"Registry file not found: {path}", path=str(path), format=file_format)

    text = path.read_text(encoding="utf-8")
    if file_format == "json":
        registry = CapabilityRegistry.from_json(text)
    else:
        registry = CapabilityRegistry.from_yaml(text)

    logger.debug(f"Loaded registry from {path}", extra={"format": file_format, "capabilities": len(registry)})
    return registry
