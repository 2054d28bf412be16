"""Typed representation of a ServiceBindingRequest resource."""

from __future__ import annotations

__all__ = ("ApplicationSelector", "BackingSelector", "BindingRequest")

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class ApplicationSelector:
    """Selects the application workloads to bind."""

    resource_kind: str
    match_labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "match_labels", MappingProxyType(dict(self.match_labels))
        )


@dataclass(frozen=True)
class BackingSelector:
    """Identifies the backing service's CRD in its operator's CSV."""

    resource_name: str = ""
    resource_version: str = ""

    def __bool__(self) -> bool:
        return bool(self.resource_name)


@dataclass(frozen=True)
class BindingRequest:
    """An immutable snapshot of a ServiceBindingRequest for one
    reconciliation pass.
    """

    name: str
    namespace: str
    application_selector: ApplicationSelector
    secret_name: str
    backing_selector: BackingSelector = field(default_factory=BackingSelector)

    @classmethod
    def from_body(cls, body: Mapping[str, Any]) -> BindingRequest:
        """Build a request from a ServiceBindingRequest manifest.

        Parameters
        ----------
        body : `dict`
            The full body of the ServiceBindingRequest resource.

        Returns
        -------
        BindingRequest
            The request. The intermediary secret is named after the
            ServiceBindingRequest unless ``spec.secretName`` is set.
        """
        metadata = body["metadata"]
        spec = body.get("spec") or {}
        app_spec = spec.get("applicationSelector") or {}
        backing_spec = spec.get("backingSelector") or {}

        return cls(
            name=metadata["name"],
            namespace=metadata["namespace"],
            application_selector=ApplicationSelector(
                resource_kind=app_spec.get("resourceKind", ""),
                match_labels=app_spec.get("matchLabels") or {},
            ),
            secret_name=spec.get("secretName") or metadata["name"],
            backing_selector=BackingSelector(
                resource_name=backing_spec.get("resourceName", ""),
                resource_version=backing_spec.get("resourceVersion", ""),
            ),
        )
