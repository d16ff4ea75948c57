"""
Result type for explicit error handling.

Every fallible step of the schema compiler (validation, key synthesis, codec
assembly) and every decode of externally supplied bytes returns a
``Result[T, E]`` instead of raising. Callers pattern match on the outcome:

    >>> match artifacts.decode(value_bytes):
    ...     case Success(user):
    ...         print(user.name)
    ...     case Failure(error):
    ...         print(f"rejected record: {error.kind}")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, NoReturn, TypeVar


T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying a value of type T."""

    value: T

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the carried value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        """Apply f to the carried value."""
        return Success(f(self.value))

    def map_error(self, f: Callable[[E], F]) -> Result[T, F]:
        """No-op on Success."""
        result: Result[T, F] = Success(self.value)
        return result

    def and_then(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain another fallible step."""
        return f(self.value)


@dataclass(frozen=True)
class Failure(Generic[E]):
    """Failed outcome carrying an error of type E."""

    error: E

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """
        Unwrap the success value.

        Raises:
            RuntimeError: Always, since Failure has no value.
        """
        raise RuntimeError(f"Called unwrap() on Failure: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        """No-op on Failure."""
        result: Result[U, E] = Failure(self.error)
        return result

    def map_error(self, f: Callable[[E], F]) -> Result[T, F]:
        """Apply f to the carried error."""
        return Failure(f(self.error))

    def and_then(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """No-op on Failure."""
        result: Result[U, E] = Failure(self.error)
        return result


Result = Success[T] | Failure[E]


def partition_results(
    results: list[Result[T, E]],
) -> tuple[list[T], list[E]]:
    """
    Split results into successes and failures, preserving input order.

    The pipeline uses this to aggregate per-schema outcomes before reporting,
    so diagnostics always come out in scan order.

    Args:
        results: Result values to partition

    Returns:
        Tuple of (successes, failures)
    """
    successes: list[T] = [result.value for result in results if isinstance(result, Success)]
    failures: list[E] = [result.error for result in results if isinstance(result, Failure)]
    return (successes, failures)


def collect_errors(results: list[Result[T, list[E]]]) -> Result[list[T], list[E]]:
    """
    Collect results whose errors are lists, concatenating every error list.

    Unlike a short-circuiting collect, all failures contribute, which is what a
    compiler wants: one run reports every broken schema.
    """
    successes, failures = partition_results(results)
    match failures:
        case []:
            return Success(successes)
        case _:
            return Failure([error for errors in failures for error in errors])


__all__ = [
    "Failure",
    "Result",
    "Success",
    "collect_errors",
    "partition_results",
]
