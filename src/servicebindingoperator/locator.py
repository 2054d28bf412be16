"""Discovery of the application workloads targeted by a binding."""

from __future__ import annotations

__all__ = ("format_label_selector", "search_workloads")

from collections.abc import Mapping
from typing import Any

import structlog

from servicebindingoperator.k8s import ObjectStore
from servicebindingoperator.kinds import KindDescriptor


def format_label_selector(match_labels: Mapping[str, str]) -> str:
    """Format labels as an equality-based label selector that requires all
    of them (``key=value,key=value``).
    """
    return ",".join(f"{key}={value}" for key, value in match_labels.items())


def search_workloads(
    *,
    namespace: str,
    kind: KindDescriptor,
    match_labels: Mapping[str, str],
    store: ObjectStore,
    logger: Any | None = None,
) -> list[dict[str, Any]]:
    """Search for workloads of a kind that carry all of the given labels.

    Parameters
    ----------
    namespace : `str`
        The namespace of the ServiceBindingRequest.
    kind : `KindDescriptor`
        The workload list kind (see
        `servicebindingoperator.kinds.resolve_list_kind`).
    match_labels : `dict`
        Labels that every matching workload must have. Empty labels match
        every workload in the namespace.
    store : `ObjectStore`
        Access to the Kubernetes API.
    logger
        Logger to use. Defaults to a structlog logger.

    Returns
    -------
    workloads : `list` of `dict`
        The matching workload manifests, possibly empty.
    """
    if logger is None:
        logger = structlog.get_logger(__name__)

    label_selector = format_label_selector(match_labels)
    logger.info(
        f"Searching for target applications in {namespace} "
        f"(kind={kind.api_version}/{kind.kind}, "
        f"labels={label_selector!r})"
    )
    try:
        workloads = store.list(
            namespace=namespace, kind=kind, label_selector=label_selector
        )
    except Exception:
        logger.exception("Failed to list target applications")
        raise

    logger.info(f"Application(s) found: {len(workloads)}")
    return workloads
