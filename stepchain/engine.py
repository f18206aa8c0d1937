"""Execution engine — walks a chain's declarations and folds them into a Result.

The walk keeps two flags on the per-run :class:`RunState`:

* **fail-mode** — a step returned a falsy outcome or a ``Failure``.  Only
  ``FAIL`` steps are considered from then on; the first one runs and the
  run ends immediately with a ``Failure``.
* **pass-fast-mode** — a step returned ``PassFast`` (class or instance).
  Every remaining step is skipped and the run ends with a ``PassFast``.

Subprocesses and wrap sub-chains are full invocations of their own; their
terminal ``Result`` becomes the outcome of the enclosing step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from .context import Context
from .declaration import (
    Action,
    ChainRef,
    Closure,
    NamedOperation,
    StepDeclaration,
    StepKind,
    to_action,
)
from .errors import ChainDefinitionError
from .result import Failure, Result, Success, is_failed_outcome, is_pass_fast

if TYPE_CHECKING:
    from .chain import Chain

logger = logging.getLogger(__name__)


@dataclass
class RunState:
    """Mutable state owned by a single invocation.

    ``last_outcome`` starts as ``True`` so a run whose steps were all
    skipped (e.g. only fail steps) reduces to a success.
    """

    ctx: Context
    fail_mode: bool = False
    pass_fast_mode: bool = False
    failed_step: Optional[StepDeclaration] = None
    last_outcome: Any = True


def execute(chain: "Chain") -> Result:
    """Run every declaration of ``type(chain)`` against ``chain.ctx``."""
    cls = type(chain)
    if not cls.steps:
        return _perform(chain)

    state = chain.state
    level = cls.config.log_level
    name = cls.__qualname__

    for index, declaration in enumerate(cls.steps):
        if state.pass_fast_mode:
            continue

        if state.fail_mode:
            if declaration.kind is not StepKind.FAIL:
                continue
            logger.log(level, "%s: running %s", name, declaration.label)
            dispatch(chain, index, declaration)
            return _finish(chain, chain.failure())

        if declaration.kind is StepKind.FAIL:
            continue

        logger.log(level, "%s: running %s", name, declaration.label)
        outcome = dispatch(chain, index, declaration)
        state.last_outcome = outcome

        if is_failed_outcome(outcome):
            state.failed_step = declaration
            state.fail_mode = True
            logger.log(level, "%s: %s failed, entering fail-mode", name, declaration.label)
        elif is_pass_fast(outcome):
            state.pass_fast_mode = True
            logger.log(level, "%s: %s passed fast, skipping the rest", name, declaration.label)

    return _finish(chain, _reduce(chain))


def dispatch(chain: "Chain", index: int, declaration: StepDeclaration) -> Any:
    """Run one declaration and return its outcome as seen by the flag logic."""
    action: Action = declaration.action
    if declaration.kind is StepKind.NESTED:
        action = to_action(chain.resolve_operation(action.name)(chain.ctx, **chain.ctx))
        logger.debug("%s resolved to %s", declaration.label, action.label)

    sub_chain = type(chain).sub_chains.get(index)
    if sub_chain is not None:
        outcome = _run_wrapped(chain, action, sub_chain)
    elif isinstance(action, NamedOperation):
        outcome = chain.resolve_operation(action.name)(chain.ctx, **chain.ctx)
    elif isinstance(action, Closure):
        outcome = action.fn(chain.ctx)
    elif isinstance(action, ChainRef):
        outcome = action.chain.call(chain.ctx)
    else:
        raise ChainDefinitionError(f"Unknown action {action!r}")

    if declaration.kind is StepKind.PASS:
        return chain.success()
    return outcome


def _run_wrapped(chain: "Chain", action: Action, sub_chain: type["Chain"]) -> Optional[Result]:
    if isinstance(action, NamedOperation):
        entity: Callable[..., Any] = chain.resolve_operation(action.name)
    elif isinstance(action, Closure):
        entity = action.fn
    else:
        raise ChainDefinitionError(f"{action.label} cannot wrap nested steps")

    captured: list[Result] = []

    def proceed() -> Result:
        result = sub_chain.call(chain.ctx)
        captured.append(result)
        return result

    entity(chain.ctx, proceed)

    if not captured:
        logger.warning("Wrap entity %s never ran its nested steps", action.label)
        return None
    return captured[-1]


def _perform(chain: "Chain") -> Result:
    result = chain.perform()
    if isinstance(result, (Success, Failure)):
        return result
    logger.log(
        type(chain).config.log_level,
        "%s.perform returned %r, treating it as a failure",
        type(chain).__qualname__,
        result,
    )
    return Failure(chain.ctx)


def _reduce(chain: "Chain") -> Result:
    outcome = chain.state.last_outcome
    if is_failed_outcome(outcome):
        return chain.failure()
    if is_pass_fast(outcome):
        return chain.pass_fast()
    return chain.success()


def _finish(chain: "Chain", result: Result) -> Result:
    logger.log(
        type(chain).config.log_level,
        "%s finished with %s",
        type(chain).__qualname__,
        type(result).__name__,
    )
    return result
