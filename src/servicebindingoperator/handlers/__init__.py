"""Kopf handlers for the service-binding-operator."""

__all__ = (
    "reconcile_binding_request",
    "start_operator",
)

from servicebindingoperator.handlers.bindingrequest import (
    reconcile_binding_request,
)
from servicebindingoperator.startup import start_operator
