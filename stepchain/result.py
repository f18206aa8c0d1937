"""Terminal result types and the outcome predicates the engine folds over."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from .context import Context

if TYPE_CHECKING:
    from .declaration import StepDeclaration


@dataclass(frozen=True, eq=False)
class Result:
    """Outcome of one chain invocation.

    Every invocation returns exactly one of :class:`Success`,
    :class:`Failure` or :class:`PassFast`.  The result keeps a reference to
    the run's context so callers can read what the steps produced.  Results
    compare and hash by identity, since the context they hold is mutable.

    Attributes:
        ctx: The context the chain ran against.
        failed_step: For failures, the declaration whose outcome triggered
            fail-mode.  ``None`` for successes and for failures produced by
            the ``perform`` override path.
    """

    ctx: Context
    failed_step: Optional["StepDeclaration"] = None

    @property
    def is_success(self) -> bool:
        return isinstance(self, Success)

    @property
    def is_failure(self) -> bool:
        return isinstance(self, Failure)

    @property
    def is_pass_fast(self) -> bool:
        return isinstance(self, PassFast)

    def __getitem__(self, key: str) -> Any:
        return self.ctx[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.ctx.get(key, default)


class Success(Result):
    """The chain ran to the end without entering fail-mode."""


class Failure(Result):
    """A step returned a falsy outcome (or an explicit ``Failure``)."""


class PassFast(Success):
    """Early, successful exit: remaining steps were skipped."""


def is_pass_fast(value: Any) -> bool:
    """True for the ``PassFast`` class used as a bare sentinel, or any instance."""
    return value is PassFast or isinstance(value, PassFast)


def is_failed_outcome(value: Any) -> bool:
    """True when a step outcome means "no".

    Only ``None``, ``False`` and failures count; ``0`` or an empty string
    returned by a step are ordinary values.
    """
    return value is None or value is False or value is Failure or isinstance(value, Failure)
