"""Error taxonomy for batch execution.

Batch-level errors (``InvalidBatch``, ``InvalidOperation`` and a disallowed
kind) are raised before any operation starts. Per-operation errors propagate
out of the batch and reject it as a whole.
"""

from __future__ import annotations


class BcFetchError(Exception):
    """Base exception for all bcfetch errors."""

    pass


class InvalidBatch(BcFetchError):
    """Raised when the batch is not a sequence of operations."""

    pass


class InvalidOperation(BcFetchError):
    """Raised when an operation lacks a usable kind (or name in keyed mode)."""

    pass


class UnsupportedOperationKind(BcFetchError):
    """Raised for an operation kind that has no resolver."""

    def __init__(self, kind: object, message: str | None = None):
        self.kind = kind
        super().__init__(message or f'unsupported operation kind: "{kind}"')


class InvalidParams(BcFetchError):
    """Raised when an operation is missing a required parameter."""

    pass


class UnsupportedChain(BcFetchError):
    """Raised for a chain id with no configured chain client.

    :ivar chain_id: The requested chain id.
    :ivar supported: Configured chain ids.
    """

    def __init__(self, chain_id: object, supported: list):
        self.chain_id = chain_id
        self.supported = list(supported)
        available = ", ".join(str(s) for s in self.supported)
        super().__init__(f'unsupported chainId "{chain_id}". Supported: {available}')


class ResolutionFailed(BcFetchError):
    """Raised when a collaborator call or its decoding fails.

    :ivar action: What was being done (e.g. "fetch balance").
    :ivar subject: What it was done for (url, contract, address).
    :ivar cause: The underlying exception.
    """

    def __init__(self, action: str, subject: str, cause: BaseException):
        self.action = action
        self.subject = subject
        self.cause = cause
        super().__init__(f"failed to {action} for {subject}: {cause}")


class PipelineError(BcFetchError):
    """Raised by a post-processing step; suppressed unless strict."""

    pass
