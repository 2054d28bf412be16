"""Resolution of application resource kinds to API group/version/kind
descriptors.
"""

from __future__ import annotations

__all__ = ("KindDescriptor", "WorkloadKind", "resolve_list_kind")

from dataclasses import dataclass, replace
from enum import Enum

from servicebindingoperator.errors import UnsupportedKindError

_LIST_SUFFIX = "List"


@dataclass(frozen=True)
class KindDescriptor:
    """Identifies a Kubernetes API resource type.

    ``plural`` is the REST resource name used to address the type through
    the API server, and is `None` when the type is only known by kind
    (for example when it is parsed out of a CSV).
    """

    group: str
    version: str
    kind: str
    plural: str | None = None

    @property
    def api_version(self) -> str:
        """The ``apiVersion`` string for manifests of this type."""
        if self.group:
            return f"{self.group}/{self.version}"
        return self.version

    @property
    def is_list(self) -> bool:
        return self.kind.endswith(_LIST_SUFFIX)

    def as_item(self) -> KindDescriptor:
        """Return the descriptor of the items of a list kind."""
        if not self.is_list:
            return self
        return replace(self, kind=self.kind[: -len(_LIST_SUFFIX)])

    def as_list(self) -> KindDescriptor:
        """Return the list variant of this kind."""
        if self.is_list:
            return self
        return replace(self, kind=f"{self.kind}{_LIST_SUFFIX}")


class WorkloadKind(Enum):
    """Application resource kinds that the operator can bind."""

    DEPLOYMENT = "deployment"
    DEPLOYMENTCONFIG = "deploymentconfig"

    @property
    def list_kind(self) -> KindDescriptor:
        return _LIST_KINDS[self]


_LIST_KINDS: dict[WorkloadKind, KindDescriptor] = {
    WorkloadKind.DEPLOYMENT: KindDescriptor(
        group="apps",
        version="v1",
        kind="DeploymentList",
        plural="deployments",
    ),
    WorkloadKind.DEPLOYMENTCONFIG: KindDescriptor(
        group="apps.openshift.io",
        version="v1",
        kind="DeploymentConfigList",
        plural="deploymentconfigs",
    ),
}


def resolve_list_kind(resource_kind: str) -> KindDescriptor:
    """Get the list descriptor for an application resource kind.

    Parameters
    ----------
    resource_kind : `str`
        The ``applicationSelector.resourceKind`` of a ServiceBindingRequest,
        such as ``Deployment``. Matching is case-insensitive.

    Returns
    -------
    KindDescriptor
        The descriptor of the list kind (e.g. ``apps/v1 DeploymentList``).

    Raises
    ------
    servicebindingoperator.errors.UnsupportedKindError
        Raised if the kind is not supported.
    """
    kind = resource_kind.lower()
    try:
        workload_kind = WorkloadKind(kind)
    except ValueError:
        raise UnsupportedKindError(kind) from None
    return workload_kind.list_kind
