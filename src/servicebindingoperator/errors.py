"""Exceptions raised by the binding engine."""

__all__ = (
    "FieldPathNotFoundError",
    "InvalidContainerError",
    "StoreError",
    "UnsupportedKindError",
    "UnsupportedShapeError",
)

from collections.abc import Sequence

import kopf
from kubernetes.client.exceptions import ApiException

StoreError = ApiException
"""Failures from the Kubernetes API are propagated as-is."""


class UnsupportedKindError(kopf.PermanentError):
    """The application selector names a resource kind the operator does
    not know how to bind.
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(
            f"resource kind '{kind}' is not supported by this operator"
        )


class UnsupportedShapeError(kopf.PermanentError):
    """A workload does not carry the field path the binder mutates."""

    def __init__(self, kind: str, path: Sequence[str]) -> None:
        self.kind = kind
        self.path = tuple(path)
        super().__init__(
            f"unable to find '{'.'.join(self.path)}' in object kind '{kind}'"
        )


class InvalidContainerError(kopf.PermanentError):
    """A container entry of a workload cannot be read as a container."""


class FieldPathNotFoundError(KeyError):
    """A nested field path is absent from a resource manifest."""

    def __init__(self, path: Sequence[str]) -> None:
        self.path = tuple(path)
        super().__init__(".".join(self.path))
