"""Helpers for interacting with Kubernetes APIs."""

from __future__ import annotations

__all__ = (
    "KubernetesObjectStore",
    "ObjectStore",
    "create_k8sclient",
    "container_from_manifest",
    "to_manifest",
)

import json
from functools import lru_cache
from typing import Any, Protocol

import kubernetes
from kubernetes.client import (
    V1ConfigMapEnvSource,
    V1Container,
    V1EnvFromSource,
    V1SecretEnvSource,
)

from servicebindingoperator.errors import InvalidContainerError
from servicebindingoperator.kinds import KindDescriptor


def create_k8sclient() -> kubernetes.client:
    """Get a Kubernetes client configured with available cluster
    authentication.

    If in-cluster authentication is available, that is used. Otherwise
    this function falls-back to using a kubectl config file, which is
    appropriate for development.
    """
    try:
        kubernetes.config.load_incluster_config()
    except Exception:
        kubernetes.config.load_kube_config()
    kubernetes.client.configuration.assert_hostname = False
    return kubernetes.client


class ObjectStore(Protocol):
    """Generic access to namespaced resources as raw manifests."""

    def list(
        self,
        *,
        namespace: str,
        kind: KindDescriptor,
        label_selector: str = "",
    ) -> list[dict[str, Any]]: ...

    def get(
        self, *, name: str, namespace: str, kind: KindDescriptor
    ) -> dict[str, Any]: ...

    def update(
        self, obj: dict[str, Any], *, kind: KindDescriptor
    ) -> dict[str, Any]: ...


class KubernetesObjectStore:
    """An `ObjectStore` backed by the Kubernetes API server.

    Resources are addressed by group, version and plural through the
    ``CustomObjectsApi``, which serves any grouped API type, so no typed
    client is needed for the workload kinds or for ClusterServiceVersions.

    Parameters
    ----------
    k8s_client
        A Kubernetes client (see `create_k8sclient`).
    """

    def __init__(self, k8s_client: Any) -> None:
        self._api = k8s_client.CustomObjectsApi()

    def list(
        self,
        *,
        namespace: str,
        kind: KindDescriptor,
        label_selector: str = "",
    ) -> list[dict[str, Any]]:
        """List resources of a kind in a namespace.

        Parameters
        ----------
        namespace : `str`
            The Kubernetes namespace.
        kind : `KindDescriptor`
            The resource type, either the item or the list kind.
        label_selector : `str`
            An equality-based label selector (``key=value,...``). An empty
            selector matches every resource.

        Returns
        -------
        items : `list` of `dict`
            The raw Kubernetes manifests.
        """
        result = self._api.list_namespaced_custom_object(
            group=kind.group,
            version=kind.version,
            namespace=namespace,
            plural=_plural(kind),
            label_selector=label_selector,
            _preload_content=False,
        )
        items = json.loads(result.data).get("items") or []
        # List items omit apiVersion and kind; restore them so that the
        # manifests can be updated as-is.
        item_kind = kind.as_item()
        for item in items:
            item.setdefault("apiVersion", item_kind.api_version)
            item.setdefault("kind", item_kind.kind)
        return items

    def get(
        self, *, name: str, namespace: str, kind: KindDescriptor
    ) -> dict[str, Any]:
        """Get a single resource as a raw manifest."""
        result = self._api.get_namespaced_custom_object(
            group=kind.group,
            version=kind.version,
            namespace=namespace,
            plural=_plural(kind),
            name=name,
            _preload_content=False,
        )
        return json.loads(result.data)

    def update(
        self, obj: dict[str, Any], *, kind: KindDescriptor
    ) -> dict[str, Any]:
        """Replace a resource with the given manifest.

        The manifest's ``metadata.resourceVersion`` is sent along, so a
        concurrent modification surfaces as a 409 `ApiException`.
        """
        metadata = obj["metadata"]
        result = self._api.replace_namespaced_custom_object(
            group=kind.group,
            version=kind.version,
            namespace=metadata["namespace"],
            plural=_plural(kind),
            name=metadata["name"],
            body=obj,
            _preload_content=False,
        )
        return json.loads(result.data)


def _plural(kind: KindDescriptor) -> str:
    if not kind.plural:
        raise ValueError(f"No REST resource name is known for {kind.kind}")
    return kind.plural


@lru_cache(maxsize=1)
def _api_client() -> kubernetes.client.ApiClient:
    return kubernetes.client.ApiClient()


def container_from_manifest(data: Any) -> V1Container:
    """Build a typed view of a container manifest for ``envFrom`` handling.

    Only the container's name, image and ``envFrom`` entries are carried
    over; the raw manifest remains the source of every other field.

    Parameters
    ----------
    data : `dict`
        One entry of a pod template's ``containers`` list.

    Returns
    -------
    container : `kubernetes.client.V1Container`
        The container model.

    Raises
    ------
    servicebindingoperator.errors.InvalidContainerError
        Raised if the entry is not a valid container.
    """
    if not isinstance(data, dict):
        raise InvalidContainerError(
            f"container entry must be a mapping, got {type(data).__name__}"
        )
    env_from = data.get("envFrom") or []
    if not isinstance(env_from, list):
        raise InvalidContainerError(
            f"envFrom of container {data.get('name')!r} must be a list"
        )
    try:
        return V1Container(
            name=data.get("name"),
            image=data.get("image"),
            env_from=[_env_from_source(entry) for entry in env_from],
        )
    except (TypeError, ValueError) as e:
        raise InvalidContainerError(
            f"invalid container {data.get('name')!r}: {e}"
        ) from e


def _env_from_source(entry: Any) -> V1EnvFromSource:
    if not isinstance(entry, dict):
        raise InvalidContainerError(
            f"envFrom entry must be a mapping, got {type(entry).__name__}"
        )
    secret_ref = entry.get("secretRef")
    config_map_ref = entry.get("configMapRef")
    return V1EnvFromSource(
        prefix=entry.get("prefix"),
        secret_ref=(
            V1SecretEnvSource(
                name=secret_ref.get("name"),
                optional=secret_ref.get("optional"),
            )
            if isinstance(secret_ref, dict)
            else None
        ),
        config_map_ref=(
            V1ConfigMapEnvSource(
                name=config_map_ref.get("name"),
                optional=config_map_ref.get("optional"),
            )
            if isinstance(config_map_ref, dict)
            else None
        ),
    )


def to_manifest(obj: Any) -> dict[str, Any]:
    """Convert a Kubernetes model object to a raw manifest fragment."""
    return _api_client().sanitize_for_serialization(obj)
