"""Compiler utilities."""

from .naming import to_canonical, to_implementation_name, to_kebab_case

__all__ = ["to_canonical", "to_implementation_name", "to_kebab_case"]
