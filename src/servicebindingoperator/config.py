"""Operator configuration as module-level attributes."""

import os

from servicebindingoperator.kinds import KindDescriptor

requeue_delay = int(os.environ.get("SBO_REQUEUE_DELAY", "10"))
"""Seconds kopf waits before retrying a binding that failed transiently."""

log_level = os.environ.get("SBO_LOG_LEVEL", "INFO").upper()
"""The minimum level of log messages emitted by the operator."""

log_format = os.environ.get("SBO_LOG_FORMAT", "console").lower()
"""Either ``console`` for key-value logs or ``json``."""

sbr_group = "apps.openshift.io"
sbr_version = "v1alpha1"
sbr_plural = "servicebindingrequests"

csv_kind = KindDescriptor(
    group="operators.coreos.com",
    version="v1alpha1",
    kind="ClusterServiceVersion",
    plural="clusterserviceversions",
)
"""The OLM ClusterServiceVersion resource type."""
