"""Binding of application workloads to the intermediary secret.

The binder points every container of the matched workloads at the
intermediary secret through an ``envFrom`` directive, so that the secret's
entries are offered to the application as environment variables.
"""

from __future__ import annotations

__all__ = (
    "CONTAINERS_PATH",
    "Binder",
    "apply_to_workloads",
    "bind_container_manifest",
    "inject_secret_reference",
)

import copy
from typing import Any

import structlog
from kubernetes.client import V1Container, V1EnvFromSource, V1SecretEnvSource

from servicebindingoperator.errors import (
    FieldPathNotFoundError,
    InvalidContainerError,
    UnsupportedShapeError,
)
from servicebindingoperator.k8s import (
    ObjectStore,
    container_from_manifest,
    to_manifest,
)
from servicebindingoperator.kinds import KindDescriptor, resolve_list_kind
from servicebindingoperator.locator import search_workloads
from servicebindingoperator.models import BindingRequest
from servicebindingoperator.structural import get_nested_list, set_nested_list

CONTAINERS_PATH = ("spec", "template", "spec", "containers")
"""Field path of the pod template containers in supported workloads."""


def inject_secret_reference(
    container: V1Container,
    secret_name: str,
    logger: Any | None = None,
) -> V1Container:
    """Make sure a container sources its environment from a secret.

    Parameters
    ----------
    container : `kubernetes.client.V1Container`
        The container. It is not modified.
    secret_name : `str`
        Name of the secret to reference.
    logger
        Logger to use. Defaults to a structlog logger.

    Returns
    -------
    container : `kubernetes.client.V1Container`
        The same container if it already references ``secret_name`` in
        ``envFrom``, otherwise a copy with a reference appended after the
        existing entries.
    """
    if logger is None:
        logger = structlog.get_logger(__name__)

    env_from = container.env_from or []
    for entry in env_from:
        secret_ref = entry.secret_ref
        if secret_ref is not None and secret_ref.name == secret_name:
            logger.info("Directive 'envFrom' is already present!")
            return container

    logger.info("Adding 'envFrom' directive...")
    updated = copy.copy(container)
    updated.env_from = [
        *env_from,
        V1EnvFromSource(secret_ref=V1SecretEnvSource(name=secret_name)),
    ]
    return updated


def bind_container_manifest(
    manifest: dict[str, Any],
    secret_name: str,
    logger: Any | None = None,
) -> dict[str, Any]:
    """Reference a secret from a raw container manifest.

    The container is read into a `kubernetes.client.V1Container` to check
    its ``envFrom`` entries. Existing entries and every other field are
    kept exactly as they are in the manifest.

    Returns
    -------
    manifest : `dict`
        The same manifest if the secret is already referenced, otherwise a
        copy with the new ``envFrom`` entry appended.

    Raises
    ------
    servicebindingoperator.errors.InvalidContainerError
        Raised if the manifest is not a valid container.
    """
    container = container_from_manifest(manifest)
    bound = inject_secret_reference(container, secret_name, logger=logger)
    if bound is container:
        return manifest

    return {
        **manifest,
        "envFrom": [
            *(manifest.get("envFrom") or []),
            to_manifest(bound.env_from[-1]),
        ],
    }


def apply_to_workloads(
    workloads: list[dict[str, Any]],
    *,
    secret_name: str,
    kind: KindDescriptor,
    store: ObjectStore,
    logger: Any | None = None,
) -> None:
    """Bind each workload's containers to a secret and persist them.

    Workloads are updated one at a time. If an update fails the error is
    raised right away and workloads updated before it keep their changes;
    binding again converges because the injection is idempotent.

    Parameters
    ----------
    workloads : `list` of `dict`
        Raw workload manifests, as returned by
        `servicebindingoperator.locator.search_workloads`. They are mutated
        in place.
    secret_name : `str`
        Name of the intermediary secret.
    kind : `KindDescriptor`
        The workload kind, used to address the updates.
    store : `ObjectStore`
        Access to the Kubernetes API.
    logger
        Logger to use. Defaults to a structlog logger.

    Raises
    ------
    servicebindingoperator.errors.UnsupportedShapeError
        Raised if a workload has no ``spec.template.spec.containers``.
    servicebindingoperator.errors.InvalidContainerError
        Raised if a container entry cannot be read as a container.
    kubernetes.client.exceptions.ApiException
        Raised if an update is rejected by the API server.
    """
    if logger is None:
        logger = structlog.get_logger(__name__)

    item_kind = kind.as_item()
    for workload in workloads:
        obj_kind = workload.get("kind", item_kind.kind)
        obj_name = workload["metadata"]["name"]
        logger.info(f"Inspecting object {obj_kind}/{obj_name}...")

        try:
            containers = get_nested_list(workload, CONTAINERS_PATH)
        except FieldPathNotFoundError:
            error = UnsupportedShapeError(obj_kind, CONTAINERS_PATH)
            logger.error(
                f"{error}; is this definition supported by this operator?"
            )
            raise error from None

        bound_containers = []
        for i, container_manifest in enumerate(containers):
            logger.info(f"Inspecting container {i} of {obj_name}...")
            try:
                bound_containers.append(
                    bind_container_manifest(
                        container_manifest, secret_name, logger=logger
                    )
                )
            except InvalidContainerError:
                logger.error(f"Container {i} of {obj_name} is invalid")
                raise

        set_nested_list(workload, bound_containers, CONTAINERS_PATH)

        logger.info(f"Updating object {obj_kind}/{obj_name}...")
        store.update(workload, kind=item_kind)


class Binder:
    """Binds the applications selected by a ServiceBindingRequest to its
    intermediary secret.

    A binder lives for a single reconciliation of one request.

    Parameters
    ----------
    request : `servicebindingoperator.models.BindingRequest`
        The request to fulfill.
    store : `ObjectStore`
        Access to the Kubernetes API.
    logger
        Logger to use. Defaults to a structlog logger.
    """

    def __init__(
        self,
        request: BindingRequest,
        store: ObjectStore,
        logger: Any | None = None,
    ) -> None:
        self.request = request
        self.store = store
        if logger is None:
            logger = structlog.get_logger(__name__).bind(
                binding_request=request.name
            )
        self.logger = logger

    @property
    def list_kind(self) -> KindDescriptor:
        return resolve_list_kind(
            self.request.application_selector.resource_kind
        )

    def search(self) -> list[dict[str, Any]]:
        """Find the workloads matched by the application selector."""
        return search_workloads(
            namespace=self.request.namespace,
            kind=self.list_kind,
            match_labels=self.request.application_selector.match_labels,
            store=self.store,
            logger=self.logger,
        )

    def bind(self) -> list[dict[str, Any]]:
        """Bind the matching workloads to the intermediary secret.

        Returns
        -------
        workloads : `list` of `dict`
            The bound workload manifests.

        Raises
        ------
        servicebindingoperator.errors.UnsupportedKindError
            Raised if the application resource kind is not supported.
        servicebindingoperator.errors.UnsupportedShapeError
            Raised if a matched workload has no pod template containers.
        kubernetes.client.exceptions.ApiException
            Raised if the Kubernetes API fails.
        """
        kind = self.list_kind
        workloads = self.search()
        apply_to_workloads(
            workloads,
            secret_name=self.request.secret_name,
            kind=kind,
            store=self.store,
            logger=self.logger,
        )
        return workloads
