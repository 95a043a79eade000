"""
YAML serialization/deserialization utilities.
"""

import yaml
from typing import Any, Dict, Optional

from .exceptions import RegistrySerializationError


def dump_yaml(data: Dict[str, Any]) -> str:
    """Serialize a mapping to a YAML document, preserving key order."""
    return yaml.dump(
        data,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True
    )


def parse_yaml(text: str, source: Optional[str] = None) -> Dict[str, Any]:
    """Parse a YAML document whose top level must be a mapping."""
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise RegistrySerializationError(f"Invalid YAML: {e}", path=source, format="yaml") from e

    if not isinstance(data, dict):
        raise RegistrySerializationError(
            "YAML document must contain a mapping at the top level",
            path=source,
            format="yaml"
        )
    return data
