"""Kopf handlers that reconcile ServiceBindingRequest resources."""

__all__ = (
    "find_backing_crd",
    "reconcile_binding_request",
    "run_binding",
)

from typing import Any

import kopf
from kubernetes.client.exceptions import ApiException

from servicebindingoperator import config
from servicebindingoperator.binder import Binder
from servicebindingoperator.k8s import (
    KubernetesObjectStore,
    ObjectStore,
    create_k8sclient,
)
from servicebindingoperator.kinds import KindDescriptor
from servicebindingoperator.models import BindingRequest
from servicebindingoperator.olm import OLM, OwnedCRDDescriptor


@kopf.on.resume(config.sbr_group, config.sbr_version, config.sbr_plural)
@kopf.on.update(config.sbr_group, config.sbr_version, config.sbr_plural)
@kopf.on.create(config.sbr_group, config.sbr_version, config.sbr_plural)
def reconcile_binding_request(
    *,
    body: dict[str, Any],
    name: str,
    namespace: str,
    logger: Any,
    **kwargs: Any,
) -> dict[str, Any]:
    """Bind the applications selected by a ServiceBindingRequest to its
    intermediary secret.

    Parameters
    ----------
    body : dict
        The full body of the ``ServiceBindingRequest`` as a read-only dict.
    name : str
        The name of the ``ServiceBindingRequest``.
    namespace : str
        The Kubernetes namespace of the ``ServiceBindingRequest``.
    logger : Any
        The kopf logger.
    **kwargs : Any
        Additional keyword arguments provided by kopf.

    Returns
    -------
    dict
        Binding summary that kopf stores in the resource's status.
    """
    request = BindingRequest.from_body(body)
    store = KubernetesObjectStore(create_k8sclient())
    try:
        return run_binding(request=request, store=store, logger=logger)
    except ApiException as e:
        logger.warning(
            f"Binding {namespace}/{name} failed with status {e.status}, "
            f"retrying in {config.requeue_delay}s"
        )
        raise kopf.TemporaryError(
            f"Kubernetes API error ({e.status}): {e.reason}",
            delay=config.requeue_delay,
        ) from e


def run_binding(
    *,
    request: BindingRequest,
    store: ObjectStore,
    logger: Any,
) -> dict[str, Any]:
    """Reconcile one ServiceBindingRequest against the given store.

    Parameters
    ----------
    request : `BindingRequest`
        The request to reconcile.
    store : `ObjectStore`
        Access to the Kubernetes API, for both workloads and CSVs.
    logger : Any
        The logger.

    Returns
    -------
    dict
        The names of the bound applications and, when found, the name of
        the backing service's CRD.
    """
    backing_crd = None
    if request.backing_selector:
        backing_crd = find_backing_crd(
            request=request, store=store, logger=logger
        )

    workloads = Binder(request, store, logger=logger).bind()
    logger.info(
        f"Bound {len(workloads)} application(s) to secret "
        f"{request.secret_name}"
    )
    return {
        "secret": request.secret_name,
        "applications": [w["metadata"]["name"] for w in workloads],
        "backingCRD": backing_crd.name if backing_crd else None,
    }


def find_backing_crd(
    *,
    request: BindingRequest,
    store: ObjectStore,
    logger: Any,
) -> OwnedCRDDescriptor | None:
    """Look up the CSV-owned CRD named by the request's backing selector.

    The selector's ``resourceName`` is matched against the CRD kind and
    ``resourceVersion`` against its version. A missing CRD is logged and
    does not prevent the binding, since the backing operator may not be
    installed yet.
    """
    selector = request.backing_selector
    olm = OLM(store, request.namespace, logger=logger)
    crd = olm.select_by_gvk(
        KindDescriptor(
            group="",
            version=selector.resource_version,
            kind=selector.resource_name,
        )
    )
    if crd is None:
        logger.warning(
            f"No ClusterServiceVersion in {request.namespace} owns a CRD "
            f"matching {selector.resource_name} "
            f"(version {selector.resource_version or 'any'})"
        )
        return None

    secret_paths = crd.secret_field_paths()
    logger.info(
        f"Backing service CRD {crd.name} advertises secret fields: "
        f"{', '.join(secret_paths) or 'none'}"
    )
    return crd
