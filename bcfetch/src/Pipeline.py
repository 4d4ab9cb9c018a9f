"""Pipeline: post-processing of resolved values.

A pipeline is a sequence of string-encoded steps applied left to right,
each step consuming the previous step's output:

    ``json:<path>``      parse a JSON string, then walk ``path``
    ``object:<path>``    walk ``path`` on an already structured value
    ``toNumber``         coerce to int/float
    ``div:<x>``, ``mul:<x>``, ``add:<x>``, ``sub:<x>``
                         arithmetic with ``x`` as the right operand

Paths are dot separated; a numeric segment indexes into a list. Walking
through a missing key, ``None`` or an out-of-range index yields ``None``.

Step strings are parsed once into typed steps and the parsed pipeline is
cached, so a batch repeating the same postprocess list parses it once.

.. code-block:: python

    >>> apply("10", ["toNumber", "mul:3", "add:1"])
    31.0
    >>> apply('{"a": {"b": 7}}', "json:a.b")
    7
    >>> apply("abc", "bogus:1")  # unknown step, input returned unchanged
    'abc'
"""

from __future__ import annotations

import json
import logging
import math
import operator
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, ClassVar, Union

from .coerce import to_number
from .errors import PipelineError

logger = logging.getLogger(__name__)


def walk_path(value: Any, path: tuple[str, ...]) -> Any:
    """Walk a parsed dot path through nested mappings and lists.

    :param value: Structured value to walk.
    :param path: Path segments.
    :returns: The value found, or None if any segment is missing.
    """
    current = value
    for segment in path:
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(segment)
        elif isinstance(current, (list, tuple)) and segment.isdecimal():
            index = int(segment)
            current = current[index] if index < len(current) else None
        else:
            return None
    return current


def _parse_path(text: str) -> tuple[str, ...]:
    return tuple(segment for segment in text.split(".") if segment)


@dataclass(frozen=True)
class ExtractJsonPath:
    """Parse the value as JSON when it is a string, then walk ``path``."""

    path: tuple[str, ...]

    def apply(self, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            try:
                value = json.loads(value)
            except (ValueError, RecursionError) as e:
                raise PipelineError(f"invalid JSON: {e}") from e
        return walk_path(value, self.path)


@dataclass(frozen=True)
class ExtractObjectPath:
    """Walk ``path`` on a value that is already structured."""

    path: tuple[str, ...]

    def apply(self, value: Any) -> Any:
        return walk_path(value, self.path)


@dataclass(frozen=True)
class CoerceNumber:
    """Coerce the value to a number."""

    def apply(self, value: Any) -> Any:
        try:
            return to_number(value)
        except (TypeError, ValueError) as e:
            raise PipelineError(str(e)) from e


@dataclass(frozen=True)
class Arithmetic:
    """Apply ``value <op> operand`` after numeric coercion."""

    OPERATORS: ClassVar[dict[str, Callable[[Any, Any], Any]]] = {
        "add": operator.add,
        "sub": operator.sub,
        "mul": operator.mul,
        "div": operator.truediv,
    }

    op: str
    operand: float

    def apply(self, value: Any) -> Any:
        number = CoerceNumber().apply(value)
        try:
            return self.OPERATORS[self.op](number, self.operand)
        except ZeroDivisionError as e:
            raise PipelineError(f"division by zero in '{self.op}:{self.operand}'") from e
        except OverflowError as e:
            raise PipelineError(f"overflow in '{self.op}:{self.operand}': {e}") from e


PipelineStep = Union[ExtractJsonPath, ExtractObjectPath, CoerceNumber, Arithmetic]


def parse_step(text: str) -> PipelineStep:
    """Parse one step string into a typed step.

    :param text: Step such as ``"json:data.price"`` or ``"div:100"``.
    :returns: The parsed step.
    :raises PipelineError: If the prefix is unknown or the operand malformed.
    """
    if text == "toNumber":
        return CoerceNumber()

    prefix, sep, argument = text.partition(":")
    if sep:
        if prefix == "json":
            return ExtractJsonPath(_parse_path(argument))
        if prefix == "object":
            return ExtractObjectPath(_parse_path(argument))
        if prefix in Arithmetic.OPERATORS:
            try:
                operand = float(argument)
            except ValueError as e:
                raise PipelineError(f"invalid operand in step '{text}'") from e
            if not math.isfinite(operand):
                raise PipelineError(f"invalid operand in step '{text}'")
            return Arithmetic(prefix, operand)
    raise PipelineError(f"unknown postprocess step '{text}'")


@dataclass(frozen=True)
class Pipeline:
    """A parsed, reusable sequence of steps.

    :ivar steps: Steps applied in order.
    """

    steps: tuple[PipelineStep, ...]

    @classmethod
    def parse(cls, steps: str | Sequence[str]) -> Pipeline:
        """Parse a step string or sequence of step strings.

        :param steps: A single step or an ordered sequence of steps.
        :returns: Parsed pipeline (cached per distinct sequence).
        :raises PipelineError: If any step is invalid.
        """
        if isinstance(steps, str):
            steps = (steps,)
        elif not isinstance(steps, Sequence):
            raise PipelineError(f"postprocess must be a string or list, got {steps!r}")
        for step in steps:
            if not isinstance(step, str):
                raise PipelineError(f"postprocess step must be a string, got {step!r}")
        return _parse_cached(tuple(steps))

    def apply(self, value: Any) -> Any:
        """Run every step over ``value``.

        :raises PipelineError: If a step fails.
        """
        for step in self.steps:
            value = step.apply(value)
        return value


@lru_cache(maxsize=256)
def _parse_cached(steps: tuple[str, ...]) -> Pipeline:
    return Pipeline(tuple(parse_step(step) for step in steps))


def apply(
    value: Any,
    steps: str | Sequence[str] | None,
    *,
    strict: bool = False,
) -> Any:
    """Post-process a resolved value.

    With ``strict=False`` a failing pipeline is logged and the original value
    is returned untransformed. With ``strict=True`` the error propagates.

    :param value: Resolved value.
    :param steps: Step string, sequence of step strings, or None for no-op.
    :param strict: Propagate ``PipelineError`` instead of falling back.
    :returns: Transformed value, or ``value`` on suppressed failure.
    :raises PipelineError: Only when ``strict`` is true.
    """
    if steps is None:
        return value
    try:
        return Pipeline.parse(steps).apply(value)
    except PipelineError as e:
        if strict:
            raise
        logger.warning(f"Postprocess {steps!r} failed, returning original value: {e}")
        return value
