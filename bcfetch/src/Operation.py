"""Operation: a single fetch request within a batch.

.. code-block:: python

    >>> op = Operation.from_dict(
    ...     {"kind": "binance", "params": {"symbol": "BTCUSDT"}, "postprocess": "toNumber"}
    ... )
    >>> op.kind
    <OperationKind.BINANCE: 'binance'>
    >>> op.postprocess
    'toNumber'
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import InvalidOperation, UnsupportedOperationKind

# Tag handled only by browser-based scraping, never by this engine.
XPATH_KIND = "xpath"


class OperationKind(str, Enum):
    """Closed set of operation tags with a resolver."""

    HTTP_GET = "http-get"
    HTTP_POST = "http-post"
    BALANCE_OF = "balanceOf"
    BINANCE = "binance"
    LP_PRICE = "lpPrice"
    CALL = "call"

    @classmethod
    def values(cls) -> list[str]:
        return [kind.value for kind in cls]


def raw_kind(raw: Mapping[str, Any]) -> Any:
    """Return the tag of a raw operation; ``type`` is accepted for ``kind``."""
    if "kind" in raw:
        return raw["kind"]
    return raw.get("type")


@dataclass(frozen=True)
class Operation:
    """A validated operation.

    :ivar kind: Resolver tag.
    :ivar params: Tag-specific parameters.
    :ivar name: Caller label, used as the result key in keyed mode.
    :ivar postprocess: Step string or list of step strings, if any.
    """

    kind: OperationKind
    params: Mapping[str, Any] = field(default_factory=dict)
    name: str | None = None
    postprocess: str | Sequence[str] | None = None

    @classmethod
    def from_dict(cls, raw: Any, *, require_name: bool = False) -> Operation:
        """Build an operation from a raw mapping.

        ``postprocess`` is read from the operation itself and, when absent
        there, from ``params``.

        :param raw: Raw operation mapping.
        :param require_name: Require a non-empty ``name`` (keyed mode).
        :returns: The operation.
        :raises InvalidOperation: If the mapping, kind or name is unusable.
        :raises UnsupportedOperationKind: If the kind has no resolver.
        """
        if not isinstance(raw, Mapping):
            raise InvalidOperation(f"invalid operation: {raw!r}")

        kind = raw_kind(raw)
        if not isinstance(kind, str) or not kind:
            raise InvalidOperation(f"operation has no kind: {raw!r}")

        name = raw.get("name")
        if require_name and (not isinstance(name, str) or not name):
            raise InvalidOperation(f'operation is missing a "name" field: {raw!r}')

        params = raw.get("params") or {}
        if not isinstance(params, Mapping):
            raise InvalidOperation(f"operation params must be a mapping: {raw!r}")

        try:
            parsed_kind = OperationKind(kind)
        except ValueError:
            raise UnsupportedOperationKind(kind) from None

        postprocess = raw.get("postprocess")
        if postprocess is None:
            postprocess = params.get("postprocess")

        return cls(
            kind=parsed_kind,
            params=params,
            name=name if isinstance(name, str) else None,
            postprocess=postprocess,
        )
