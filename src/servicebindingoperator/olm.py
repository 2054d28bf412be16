"""Lookups of the custom resources owned by operators installed through the
Operator Lifecycle Manager (OLM).

A ClusterServiceVersion (CSV) lists the CRDs its operator owns under
``spec.customresourcedefinitions.owned``, together with descriptors that
tell which fields of those resources hold connection details and secrets.
"""

from __future__ import annotations

__all__ = (
    "OLM",
    "OWNED_CRDS_PATH",
    "SECRET_X_DESCRIPTOR",
    "Descriptor",
    "OwnedCRDDescriptor",
    "extract_owned_crds",
    "parse_resource_arg",
)

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import structlog
from kubernetes.client.exceptions import ApiException

from servicebindingoperator import config
from servicebindingoperator.errors import FieldPathNotFoundError
from servicebindingoperator.k8s import ObjectStore
from servicebindingoperator.kinds import KindDescriptor
from servicebindingoperator.structural import get_nested_list

OWNED_CRDS_PATH = ("spec", "customresourcedefinitions", "owned")

SECRET_X_DESCRIPTOR = "urn:alm:descriptor:io.kubernetes:Secret"


@dataclass(frozen=True)
class Descriptor:
    """A spec or status descriptor of an owned CRD."""

    path: str
    display_name: str = ""
    description: str = ""
    x_descriptors: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Descriptor:
        return cls(
            path=data.get("path", ""),
            display_name=data.get("displayName", ""),
            description=data.get("description", ""),
            x_descriptors=tuple(data.get("x-descriptors") or ()),
        )


@dataclass(frozen=True)
class OwnedCRDDescriptor:
    """An entry of a CSV's ``spec.customresourcedefinitions.owned`` list."""

    name: str
    kind: str
    version: str = ""
    display_name: str = ""
    description: str = ""
    spec_descriptors: tuple[Descriptor, ...] = field(default=())
    status_descriptors: tuple[Descriptor, ...] = field(default=())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OwnedCRDDescriptor:
        if not isinstance(data, dict):
            raise TypeError(
                f"Owned CRD entry must be a mapping, got {type(data).__name__}"
            )
        return cls(
            name=data.get("name", ""),
            kind=data.get("kind", ""),
            version=data.get("version", ""),
            display_name=data.get("displayName", ""),
            description=data.get("description", ""),
            spec_descriptors=tuple(
                Descriptor.from_dict(d)
                for d in data.get("specDescriptors") or ()
            ),
            status_descriptors=tuple(
                Descriptor.from_dict(d)
                for d in data.get("statusDescriptors") or ()
            ),
        )

    @property
    def status_field_paths(self) -> list[str]:
        return [d.path for d in self.status_descriptors]

    def secret_field_paths(self) -> list[str]:
        """Paths of the spec and status fields tagged as holding the name
        of a Secret.
        """
        return [
            d.path
            for d in (*self.spec_descriptors, *self.status_descriptors)
            if SECRET_X_DESCRIPTOR in d.x_descriptors
        ]

    def to_kind_descriptor(self) -> KindDescriptor:
        """Get the API type of the CRD. The group is parsed from the
        ``<plural>.<group>`` CRD name.
        """
        plural, group = parse_resource_arg(self.name)
        return KindDescriptor(
            group=group,
            version=self.version,
            kind=self.kind,
            plural=plural or None,
        )


def parse_resource_arg(arg: str) -> tuple[str, str]:
    """Split a ``<plural>.<group>`` resource argument.

    Returns
    -------
    plural : `str`
        The resource plural (everything before the first dot).
    group : `str`
        The API group, or an empty string for a bare resource name.
    """
    plural, _, group = arg.partition(".")
    return plural, group


def extract_owned_crds(
    csvs: Iterable[dict[str, Any]], logger: Any | None = None
) -> list[OwnedCRDDescriptor]:
    """Flatten the owned CRDs of several CSVs, in listing order.

    CSVs that own no CRDs contribute nothing.
    """
    if logger is None:
        logger = structlog.get_logger(__name__)

    crds: list[OwnedCRDDescriptor] = []
    for csv in csvs:
        csv_name = csv.get("metadata", {}).get("name")
        try:
            owned = get_nested_list(csv, OWNED_CRDS_PATH)
        except FieldPathNotFoundError:
            logger.debug(f"CSV {csv_name} does not own any CRDs")
            continue
        except TypeError:
            logger.exception(f"Malformed owned CRDs in CSV {csv_name}")
            raise
        crds.extend(OwnedCRDDescriptor.from_dict(crd) for crd in owned)
    return crds


class OLM:
    """Queries ClusterServiceVersions in a namespace.

    Nothing is cached: every call reads the CSVs from the API server.

    Parameters
    ----------
    store : `ObjectStore`
        Access to the Kubernetes API.
    namespace : `str`
        The namespace where CSVs are listed.
    logger
        Logger to use. Defaults to a structlog logger.
    """

    def __init__(
        self,
        store: ObjectStore,
        namespace: str,
        logger: Any | None = None,
    ) -> None:
        self.store = store
        self.namespace = namespace
        if logger is None:
            logger = structlog.get_logger(__name__)
        self.logger = logger

    def list_csvs(self) -> list[dict[str, Any]]:
        """List the CSV manifests in the namespace.

        A 404 from the API server, as when OLM is not installed, is
        treated as an empty list.
        """
        try:
            return self.store.list(
                namespace=self.namespace, kind=config.csv_kind
            )
        except ApiException as e:
            if e.status == 404:
                self.logger.info(
                    f"ClusterServiceVersions not found in {self.namespace}"
                )
                return []
            self.logger.exception("Failed to list ClusterServiceVersions")
            raise
        except Exception:
            self.logger.exception("Failed to list ClusterServiceVersions")
            raise

    def list_owned_descriptors(self) -> list[OwnedCRDDescriptor]:
        """List the CRDs owned by all CSVs in the namespace."""
        return extract_owned_crds(self.list_csvs(), logger=self.logger)

    def list_owned_gvks(self) -> list[KindDescriptor]:
        """List the API types of the CRDs owned by all CSVs in the
        namespace.
        """
        return [
            crd.to_kind_descriptor() for crd in self.list_owned_descriptors()
        ]

    def select_by_gvk(self, gvk: KindDescriptor) -> OwnedCRDDescriptor | None:
        """Select the owned CRD that matches an API type.

        Kinds are compared case-insensitively. Versions are compared
        case-insensitively too, but only when the CRD descriptor declares a
        version; one without a version matches any version. The group is
        not compared.

        If several descriptors match, the first one in CSV listing order is
        returned. Which one that is depends on the API server's ordering,
        so duplicates should not be relied upon.

        Returns
        -------
        crd : `OwnedCRDDescriptor` or `None`
            The matching descriptor, or `None` if there is none.
        """
        for crd in self.list_owned_descriptors():
            self.logger.debug(
                f"Inspecting CRDDescription {crd.name} "
                f"(kind={crd.kind}, version={crd.version})"
            )
            if crd.kind.lower() != gvk.kind.lower():
                continue
            if crd.version and crd.version.lower() != gvk.version.lower():
                continue
            self.logger.info(f"CRDDescription {crd.name} matches {gvk.kind}")
            return crd

        self.logger.info(
            f"No CRD could be found for {gvk.api_version}/{gvk.kind}"
        )
        return None

    def list_gvks_for_csv(
        self, *, name: str, namespace: str
    ) -> list[KindDescriptor]:
        """List the API types of the CRDs owned by one CSV.

        Raises
        ------
        kubernetes.client.exceptions.ApiException
            Raised if the CSV cannot be read, including when it does not
            exist.
        """
        try:
            csv = self.store.get(
                name=name, namespace=namespace, kind=config.csv_kind
            )
        except Exception:
            self.logger.exception(
                f"Failed to read ClusterServiceVersion {namespace}/{name}"
            )
            raise
        return [
            crd.to_kind_descriptor()
            for crd in extract_owned_crds([csv], logger=self.logger)
        ]
