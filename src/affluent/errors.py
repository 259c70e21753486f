"""Error types and policies used throughout Affluent pipelines."""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")


class ErrorAction(Enum):
    """What a stage does with an item whose callback failed."""

    SKIP = "skip"  # Drop the item, keep going
    SUBSTITUTE = "substitute"  # Emit a replacement value, keep going
    PROPAGATE = "propagate"  # Stop the whole pipeline with the error


@dataclass(frozen=True)
class ErrorOutcome(Generic[U]):
    """Decision returned by an error policy.

    Use the ``skip``, ``substitute`` and ``propagate`` constructors rather
    than building instances by hand.

    Attributes:
        action: The action the stage must take
        value: Replacement value, only meaningful for SUBSTITUTE
    """

    action: ErrorAction
    value: Any = None

    @classmethod
    def skip(cls) -> "ErrorOutcome[Any]":
        return cls(ErrorAction.SKIP)

    @classmethod
    def substitute(cls, value: U) -> "ErrorOutcome[U]":
        return cls(ErrorAction.SUBSTITUTE, value)

    @classmethod
    def propagate(cls) -> "ErrorOutcome[Any]":
        return cls(ErrorAction.PROPAGATE)


ErrorPolicy = Callable[[T, Exception], ErrorOutcome[U] | Awaitable[ErrorOutcome[U]]]
"""Per-stage decision function: ``policy(item, error) -> ErrorOutcome``.

A stage without a policy behaves as if it had ``propagate_errors``.
"""


def skip_errors(item: Any, error: Exception) -> ErrorOutcome[Any]:
    """Policy dropping every item whose callback failed."""
    return ErrorOutcome.skip()


def propagate_errors(item: Any, error: Exception) -> ErrorOutcome[Any]:
    """Policy failing the pipeline on the first callback error."""
    return ErrorOutcome.propagate()


def substitute_with(value: U) -> ErrorPolicy[Any, U]:
    """Build a policy replacing every failed item with ``value``.

    Example:
        >>> await Pipeline([1, 0, 2]).map(lambda x: 1 / x, substitute_with(0.0)).result()
        [1.0, 0.0, 0.5]
    """

    def _policy(item: Any, error: Exception) -> ErrorOutcome[U]:
        return ErrorOutcome.substitute(value)

    return _policy


class ErrorEvent:
    """Error event for collecting processing errors."""

    def __init__(self, error: Exception, item: Any, step_name: Optional[str] = None):
        self.error = error
        self.item = item
        self.step_name = step_name

    def __repr__(self):
        return f"ErrorEvent(step={self.step_name!r}, item={self.item!r}, error={self.error!r})"


class ErrorCollector:
    """Policy that records every failure and skips the failed item.

    A single collector can be shared by several stages; the recorded events
    keep the order in which the failures happened.

    Example:
        >>> collector = ErrorCollector()
        >>> data = await Pipeline(items).map(parse, collector).result()
        >>> collector.raise_if_errors()
    """

    def __init__(self, step_name: Optional[str] = None):
        self.step_name = step_name
        self.errors: List[ErrorEvent] = []

    def __call__(self, item: Any, error: Exception) -> ErrorOutcome[Any]:
        self.errors.append(ErrorEvent(error, item, self.step_name))
        return ErrorOutcome.skip()

    @property
    def has_errors(self) -> bool:
        """Check if any errors were recorded."""
        return len(self.errors) > 0

    def raise_if_errors(self):
        """Raise a PipelineError if any errors were collected.

        Raises:
            PipelineError: Wrapping the first recorded error
        """
        if self.has_errors:
            error_messages = [f"{err.step_name}: {err.error}" for err in self.errors]
            raise PipelineError(
                f"Pipeline completed with {len(self.errors)} errors: {'; '.join(error_messages)}",
                self.errors[0].error,
                self.errors[0].step_name,
            )


async def resolve_outcome(
    policy: ErrorPolicy[T, U] | None, item: T, error: Exception
) -> ErrorOutcome[U]:
    """Ask ``policy`` what to do about ``error``; no policy means propagate.

    Raises:
        TypeError: If the policy returns something that is not an ErrorOutcome
    """
    if policy is None:
        return ErrorOutcome.propagate()

    outcome = policy(item, error)
    if inspect.isawaitable(outcome):
        outcome = await outcome

    if not isinstance(outcome, ErrorOutcome):
        raise TypeError(
            f"error policy must return an ErrorOutcome, got {type(outcome).__name__}"
        )

    logger.debug("Error policy chose %s for %r (%r)", outcome.action.value, item, error)
    return outcome


class PipelineError(Exception):
    """Base class for failures raised by pipeline execution."""

    def __init__(
        self,
        message: str,
        original_error: Optional[BaseException] = None,
        step_name: Optional[str] = None,
    ):
        """Create a pipeline error with contextual metadata.

        Args:
            message: Human-readable description of the failure.
            original_error: The original exception that was raised.
            step_name: Optional name of the step where the error occurred.

        """
        self.original_error = original_error
        self.step_name = step_name
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message)


class StageCallbackError(PipelineError):
    """A stage callback failed and its error policy chose to propagate."""

    def __init__(self, original_error: Exception, step_name: str, item: Any):
        self.item = item
        super().__init__(
            f"Callback failed in {step_name} for item {item!r}",
            original_error,
            step_name,
        )


class SinkWriteError(PipelineError):
    """A destination rejected a write during ``pipe`` or ``pipe_first``."""

    def __init__(self, original_error: Exception, destination: Any, item: Any):
        self.destination = destination
        self.item = item
        super().__init__(
            f"Write to {destination!r} failed for item {item!r}",
            original_error,
            "pipe",
        )


class StructuralError(ValueError):
    """Invalid stage configuration or misuse of a single-pass stream."""
