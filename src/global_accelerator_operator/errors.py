"""Error taxonomy for accelerator reconciliation.

``AcceleratorNotFoundError`` is the only condition absorbed by the reconciler:
read turns it into an explicit absence and delete treats it as success. Every
other error reaches the caller of the lifecycle operation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from .reconciler import UpdateResult


class AcceleratorError(Exception):
    """Base class for all accelerator errors."""


class AcceleratorNotFoundError(AcceleratorError):
    """The provider reports that the accelerator does not exist."""

    def __init__(self, arn: str, cause: Exception | None = None) -> None:
        self.arn = arn
        self.cause = cause
        super().__init__(f"Accelerator {arn} not found")


class MutationFailedError(AcceleratorError):
    """The provider rejected or could not process a mutating request."""

    operation = "mutate"

    def __init__(self, arn: str | None, cause: Exception) -> None:
        self.arn = arn
        self.cause = cause
        target = f" ({arn})" if arn else ""
        super().__init__(f"Error during accelerator {self.operation}{target}: {cause}")


class CreateFailedError(MutationFailedError):
    operation = "create"


class UpdateFailedError(MutationFailedError):
    operation = "update"


class DeleteFailedError(MutationFailedError):
    operation = "delete"


class AttributesUpdateFailedError(MutationFailedError):
    """Updating the flow log attributes failed.

    ``result`` describes which update steps were already applied when the
    attributes step failed. Applied steps are not rolled back.
    """

    operation = "attributes update"

    def __init__(
        self,
        arn: str | None,
        cause: Exception,
        result: UpdateResult | None = None,
    ) -> None:
        super().__init__(arn, cause)
        self.result = result


class AttributesReadError(AcceleratorError):
    """Reading the attributes of an existing accelerator failed."""

    def __init__(self, arn: str, cause: Exception) -> None:
        self.arn = arn
        self.cause = cause
        super().__init__(f"Error reading attributes of accelerator {arn}: {cause}")


class ProvisioningTimeoutError(AcceleratorError):
    """Polling ran out of time before a target status was observed.

    This is a local failure to observe completion. The remote operation may
    still finish after the deadline.
    """

    def __init__(self, arn: str | None, last_status: Any, timeout: float) -> None:
        self.arn = arn
        self.last_status = last_status
        self.timeout = timeout
        target = f" ({arn})" if arn else ""
        super().__init__(
            f"Timeout after {timeout:g}s waiting for accelerator{target} "
            f"(last status: {last_status or 'unknown'})"
        )


class UnexpectedStatusError(AcceleratorError):
    """Polling observed a status outside both the pending and target sets."""

    def __init__(
        self,
        arn: str | None,
        status: Any,
        pending: Iterable[Any],
        target: Iterable[Any],
    ) -> None:
        self.arn = arn
        self.status = status
        self.pending = frozenset(pending)
        self.target = frozenset(target)
        target_desc = f" ({arn})" if arn else ""
        super().__init__(
            f"Unexpected status {status!r} for accelerator{target_desc}, "
            f"expected one of {sorted(map(str, self.pending | self.target))}"
        )
