"""Tests for the servicebindingoperator.locator module."""

from __future__ import annotations

from typing import Any

import pytest
from kubernetes.client.exceptions import ApiException

from servicebindingoperator.kinds import resolve_list_kind
from servicebindingoperator.locator import (
    format_label_selector,
    search_workloads,
)

DEPLOYMENT_LIST = resolve_list_kind("deployment")

MATCH_LABELS = {"connects-to": "database", "environment": "binder"}


def test_format_label_selector() -> None:
    assert (
        format_label_selector(MATCH_LABELS)
        == "connects-to=database,environment=binder"
    )
    assert format_label_selector({}) == ""


def test_search_returns_only_labelled_workloads(
    store: Any, deployment_factory: Any
) -> None:
    for i in range(3):
        deployment_factory("binder", f"match-{i}", MATCH_LABELS)
    for i in range(2):
        deployment_factory("binder", f"other-{i}", {"environment": "binder"})
    deployment_factory("elsewhere", "match-elsewhere", MATCH_LABELS)

    workloads = search_workloads(
        namespace="binder",
        kind=DEPLOYMENT_LIST,
        match_labels=MATCH_LABELS,
        store=store,
    )

    assert sorted(w["metadata"]["name"] for w in workloads) == [
        "match-0",
        "match-1",
        "match-2",
    ]
    assert store.list_calls == [
        ("binder", DEPLOYMENT_LIST, "connects-to=database,environment=binder")
    ]


def test_search_empty_labels_match_everything(
    store: Any, deployment_factory: Any
) -> None:
    deployment_factory("binder", "a", MATCH_LABELS)
    deployment_factory("binder", "b", {})

    workloads = search_workloads(
        namespace="binder", kind=DEPLOYMENT_LIST, match_labels={}, store=store
    )
    assert len(workloads) == 2


def test_search_no_results(store: Any) -> None:
    workloads = search_workloads(
        namespace="binder",
        kind=DEPLOYMENT_LIST,
        match_labels=MATCH_LABELS,
        store=store,
    )
    assert workloads == []


def test_search_propagates_store_errors(store: Any) -> None:
    error = ApiException(status=500, reason="Internal Server Error")
    store.fail_list = error
    with pytest.raises(ApiException) as excinfo:
        search_workloads(
            namespace="binder",
            kind=DEPLOYMENT_LIST,
            match_labels=MATCH_LABELS,
            store=store,
        )
    assert excinfo.value is error
