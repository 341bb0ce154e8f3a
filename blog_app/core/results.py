from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass
class StepResult(Generic[T]):
    """
    Outcome of one best-effort step.

    ``value`` is always usable: on failure it holds the safe default the
    step was run with, and ``error`` holds what went wrong.
    """

    value: T
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_step(fn: Callable[[], T], default: T) -> StepResult[T]:
    try:
        return StepResult(fn())
    except Exception as e:
        return StepResult(default, e)
