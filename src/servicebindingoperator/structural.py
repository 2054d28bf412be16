"""Accessors for nested fields of schema-less resource manifests.

Kubernetes resources are handled as plain `dict` manifests so that the same
code can mutate any kind that shares a field layout. These helpers give the
nested lookups a typed failure mode instead of ad-hoc indexing.
"""

from __future__ import annotations

__all__ = ("get_nested_field", "get_nested_list", "set_nested_list")

from collections.abc import Sequence
from typing import Any

from servicebindingoperator.errors import FieldPathNotFoundError


def get_nested_field(obj: dict[str, Any], path: Sequence[str]) -> Any:
    """Get the value at a nested field path.

    Parameters
    ----------
    obj : `dict`
        The resource manifest.
    path : sequence of `str`
        Field names, outermost first (e.g.
        ``("spec", "template", "spec", "containers")``).

    Returns
    -------
    value
        The value stored at ``path``.

    Raises
    ------
    servicebindingoperator.errors.FieldPathNotFoundError
        Raised if any field along ``path`` is absent or is not a mapping.
    """
    value: Any = obj
    for field in path:
        if not isinstance(value, dict) or field not in value:
            raise FieldPathNotFoundError(path)
        value = value[field]
    return value


def get_nested_list(obj: dict[str, Any], path: Sequence[str]) -> list[Any]:
    """Get a list stored at a nested field path.

    A `None` value counts as an absent field.

    Raises
    ------
    servicebindingoperator.errors.FieldPathNotFoundError
        Raised if the path is absent.
    TypeError
        Raised if the path exists but does not hold a list.
    """
    value = get_nested_field(obj, path)
    if value is None:
        raise FieldPathNotFoundError(path)
    if not isinstance(value, list):
        raise TypeError(
            f"{'.'.join(path)} accessor error: {value!r} is of the type "
            f"{type(value).__name__}, expected list"
        )
    return value


def set_nested_list(
    obj: dict[str, Any], value: list[Any], path: Sequence[str]
) -> None:
    """Set a list at a nested field path, creating intermediate mappings
    as needed.
    """
    if not path:
        raise ValueError("path must name at least one field")
    parent = obj
    for field in path[:-1]:
        child = parent.get(field)
        if child is None:
            child = {}
            parent[field] = child
        elif not isinstance(child, dict):
            raise TypeError(
                f"value cannot be set because {field} is of the type "
                f"{type(child).__name__}, expected dict"
            )
        parent = child
    parent[path[-1]] = list(value)
