"""Shared test fixtures for the service-binding-operator tests."""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any

import pytest
from kubernetes.client.exceptions import ApiException

from servicebindingoperator import config
from servicebindingoperator.kinds import KindDescriptor, WorkloadKind

DEPLOYMENT = WorkloadKind.DEPLOYMENT.list_kind.as_item()


class FakeObjectStore:
    """In-memory stand-in for `servicebindingoperator.k8s.ObjectStore`.

    Stored manifests are copied on the way in and out, so callers only
    change the store through `update`.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str, str], dict[str, Any]] = {}
        self.updates: list[str] = []
        self.list_calls: list[tuple[str, KindDescriptor, str]] = []
        self.fail_updates: dict[str, ApiException] = {}
        self.fail_list: ApiException | None = None
        # Failures for lists of one item kind only, such as CSVs.
        self.fail_list_kinds: dict[str, ApiException] = {}

    @staticmethod
    def _key(
        kind: KindDescriptor, namespace: str, name: str
    ) -> tuple[str, str, str, str]:
        return (kind.api_version, kind.as_item().kind, namespace, name)

    def add(self, obj: dict[str, Any], kind: KindDescriptor) -> None:
        metadata = obj["metadata"]
        key = self._key(kind, metadata["namespace"], metadata["name"])
        self.objects[key] = copy.deepcopy(obj)

    def stored(
        self, kind: KindDescriptor, namespace: str, name: str
    ) -> dict[str, Any]:
        return self.objects[self._key(kind, namespace, name)]

    def list(
        self,
        *,
        namespace: str,
        kind: KindDescriptor,
        label_selector: str = "",
    ) -> list[dict[str, Any]]:
        self.list_calls.append((namespace, kind, label_selector))
        if self.fail_list is not None:
            raise self.fail_list
        item_kind = kind.as_item()
        if item_kind.kind in self.fail_list_kinds:
            raise self.fail_list_kinds[item_kind.kind]
        required = dict(
            term.split("=", 1) for term in label_selector.split(",") if term
        )
        results = []
        for (api_version, obj_kind, obj_ns, _), obj in self.objects.items():
            if (api_version, obj_kind, obj_ns) != (
                item_kind.api_version,
                item_kind.kind,
                namespace,
            ):
                continue
            labels = obj["metadata"].get("labels") or {}
            if all(labels.get(k) == v for k, v in required.items()):
                results.append(copy.deepcopy(obj))
        return results

    def get(
        self, *, name: str, namespace: str, kind: KindDescriptor
    ) -> dict[str, Any]:
        key = self._key(kind, namespace, name)
        try:
            return copy.deepcopy(self.objects[key])
        except KeyError:
            raise ApiException(status=404, reason="Not Found") from None

    def update(
        self, obj: dict[str, Any], *, kind: KindDescriptor
    ) -> dict[str, Any]:
        metadata = obj["metadata"]
        if metadata["name"] in self.fail_updates:
            raise self.fail_updates[metadata["name"]]
        key = self._key(kind, metadata["namespace"], metadata["name"])
        if key not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        self.objects[key] = copy.deepcopy(obj)
        self.updates.append(metadata["name"])
        return copy.deepcopy(obj)


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


def make_deployment(
    namespace: str,
    name: str,
    labels: dict[str, str],
    containers: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a Deployment manifest with a single container by default."""
    if containers is None:
        containers = [{"name": name, "image": "quay.io/example/app:latest"}]
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "labels": dict(labels),
            "resourceVersion": "1",
        },
        "spec": {
            "selector": {"matchLabels": dict(labels)},
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {"containers": containers},
            },
        },
    }


@pytest.fixture
def deployment_factory(
    store: FakeObjectStore,
) -> Callable[..., dict[str, Any]]:
    """Create Deployments and add them to the fake store."""

    def _create(
        namespace: str,
        name: str,
        labels: dict[str, str],
        containers: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        deployment = make_deployment(namespace, name, labels, containers)
        store.add(deployment, DEPLOYMENT)
        return deployment

    return _create


def make_csv(
    namespace: str, name: str, owned: list[dict[str, Any]] | None
) -> dict[str, Any]:
    """Build a ClusterServiceVersion manifest owning the given CRDs."""
    spec: dict[str, Any] = {"displayName": name}
    if owned is not None:
        spec["customresourcedefinitions"] = {"owned": owned}
    return {
        "apiVersion": config.csv_kind.api_version,
        "kind": config.csv_kind.kind,
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }


@pytest.fixture
def csv_factory(store: FakeObjectStore) -> Callable[..., dict[str, Any]]:
    """Create ClusterServiceVersions and add them to the fake store."""

    def _create(
        namespace: str, name: str, owned: list[dict[str, Any]] | None
    ) -> dict[str, Any]:
        csv = make_csv(namespace, name, owned)
        store.add(csv, config.csv_kind)
        return csv

    return _create
