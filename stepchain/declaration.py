"""Step declarations — the frozen records a chain class is built from.

A declaration binds an *action* to a *kind*::

    Steps()
        .step("validate")                   # NamedOperation -> Chain.validate
        .step(as_subprocess(Persist))       # ChainRef -> Persist.call(ctx)
        .pass_(send_receipt)                # Closure, outcome always Success
        .wrap(transaction, Steps().step("reserve_stock"))
        .fail("rollback")

Actions are one of three explicit variants (:class:`NamedOperation`,
:class:`Closure`, :class:`ChainRef`); :func:`to_action` picks the variant
for a raw value.  Declarations are immutable and shared by every
invocation of the chain that owns them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Union

from .errors import ChainDefinitionError

if TYPE_CHECKING:
    from .chain import Chain


class StepKind(Enum):
    """Role of a declaration in the run.

    Attributes:
        STEP: Ordinary step; its outcome drives the mode flags.
        PASS: Runs, but always contributes a success.
        FAIL: Only considered in fail-mode; the first one ends the run.
        WRAP: Entity bracketing a nested step list via a continuation.
        NESTED: Named operation that returns the action to dispatch.
    """

    STEP = "step"
    PASS = "pass"
    FAIL = "fail"
    WRAP = "wrap"
    NESTED = "nested"


# ---------------------------------------------------------------------------
# Action variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NamedOperation:
    """A method of the chain class, looked up by name."""

    name: str

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True)
class Closure:
    """Any callable taking ``ctx`` (plus a continuation when wrapping)."""

    fn: Callable[..., Any]

    @property
    def label(self) -> str:
        return getattr(self.fn, "__qualname__", None) or type(self.fn).__name__


@dataclass(frozen=True)
class ChainRef:
    """Another chain class run as a single step (a "subprocess")."""

    chain: type["Chain"]

    @property
    def label(self) -> str:
        return self.chain.__qualname__


Action = Union[NamedOperation, Closure, ChainRef]


def to_action(obj: Any) -> Action:
    """Coerce a raw value into an action variant.

    ``str`` becomes a :class:`NamedOperation`, a ``Chain`` subclass a
    :class:`ChainRef`, and any other callable a :class:`Closure`.
    """
    from .chain import Chain

    if isinstance(obj, (NamedOperation, Closure, ChainRef)):
        return obj
    if isinstance(obj, str):
        return NamedOperation(obj)
    if isinstance(obj, type) and issubclass(obj, Chain):
        return ChainRef(obj)
    if callable(obj):
        return Closure(obj)
    raise ChainDefinitionError(f"Cannot use {obj!r} as a step action")


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StepDeclaration:
    """One declared step.

    Attributes:
        kind: Role of the step in the run.
        action: What to dispatch.
        nested_steps: Steps bracketed by the action.  When present the
            action is called as ``action(ctx, continuation)``.
    """

    kind: StepKind
    action: Action
    nested_steps: tuple["StepDeclaration", ...] = ()

    def __post_init__(self) -> None:
        if self.kind is StepKind.WRAP and not self.nested_steps:
            raise ChainDefinitionError(f"Wrap step {self.label} declares no nested steps")
        if self.kind is StepKind.NESTED and not isinstance(self.action, NamedOperation):
            raise ChainDefinitionError(
                f"Nested step {self.label} must name an operation, got {type(self.action).__name__}"
            )
        if self.nested_steps and isinstance(self.action, ChainRef):
            raise ChainDefinitionError(f"Subprocess {self.label} cannot wrap nested steps")

    @property
    def label(self) -> str:
        return f"{self.kind.value}:{self.action.label}"

    def __repr__(self) -> str:
        suffix = f", {len(self.nested_steps)} nested" if self.nested_steps else ""
        return f"<StepDeclaration {self.label}{suffix}>"


StepsLike = Union["Steps", Iterable[Any]]


def freeze_steps(steps: StepsLike) -> tuple[StepDeclaration, ...]:
    """Turn a builder or sequence into an immutable declaration tuple.

    Bare actions in a plain sequence are declared as ordinary steps.
    """
    if isinstance(steps, Steps):
        return steps.build()
    if isinstance(steps, (str, bytes)):
        raise ChainDefinitionError("Steps must be a sequence of declarations, not a string")
    return tuple(
        item if isinstance(item, StepDeclaration) else declare(StepKind.STEP, item)
        for item in steps
    )


def declare(kind: StepKind, action: Any, nested_steps: StepsLike = ()) -> StepDeclaration:
    """Build a declaration from a raw action and optional nested steps."""
    return StepDeclaration(kind, to_action(action), freeze_steps(nested_steps))


def as_subprocess(chain: type["Chain"]) -> ChainRef:
    """Mark a chain class as a step action."""
    action = to_action(chain)
    if not isinstance(action, ChainRef):
        raise ChainDefinitionError(f"{chain!r} is not a Chain subclass")
    return action


def nested(name: str, nested_steps: StepsLike = ()) -> StepDeclaration:
    """Step whose named operation *returns* the action to run for this context."""
    return declare(StepKind.NESTED, NamedOperation(name), nested_steps)


def wrap(entity: Any, nested_steps: StepsLike) -> StepDeclaration:
    """Step that runs *nested_steps* inside ``entity(ctx, continuation)``."""
    return declare(StepKind.WRAP, entity, nested_steps)


def scoped(factory: Callable[[Any], Any]) -> Callable[[Any, Callable[[], Any]], None]:
    """Adapt a context-manager factory into a wrap entity.

    ``factory(ctx)`` must return a context manager; the nested steps run
    inside its ``with`` block.
    """

    def enter_scope(ctx: Any, proceed: Callable[[], Any]) -> None:
        with factory(ctx):
            proceed()

    enter_scope.__qualname__ = f"scoped({getattr(factory, '__qualname__', repr(factory))})"
    return enter_scope


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class Steps:
    """Fluent builder accumulating declarations in order.

    Each method returns the builder so declarations chain naturally.
    ``build()`` freezes the result; chain classes call it for you.
    """

    def __init__(self) -> None:
        self._declarations: list[StepDeclaration] = []

    def step(self, action: Any, nested_steps: StepsLike = ()) -> "Steps":
        """Ordinary step.  A prebuilt declaration is appended unchanged."""
        if isinstance(action, StepDeclaration):
            _check_no_extra_nested(action, nested_steps)
            self._declarations.append(action)
        else:
            self._declarations.append(declare(StepKind.STEP, action, nested_steps))
        return self

    def pass_(self, action: Any, nested_steps: StepsLike = ()) -> "Steps":
        """Step whose outcome is always treated as a success."""
        self._declarations.append(self._with_kind(StepKind.PASS, action, nested_steps))
        return self

    def fail(self, action: Any, nested_steps: StepsLike = ()) -> "Steps":
        """Compensating step, only run once the chain has failed."""
        self._declarations.append(self._with_kind(StepKind.FAIL, action, nested_steps))
        return self

    def wrap(self, entity: Any, nested_steps: StepsLike) -> "Steps":
        self._declarations.append(wrap(entity, nested_steps))
        return self

    def build(self) -> tuple[StepDeclaration, ...]:
        return tuple(self._declarations)

    @staticmethod
    def _with_kind(kind: StepKind, action: Any, nested_steps: StepsLike) -> StepDeclaration:
        if not isinstance(action, StepDeclaration):
            return declare(kind, action, nested_steps)
        _check_no_extra_nested(action, nested_steps)
        if action.kind is StepKind.NESTED:
            raise ChainDefinitionError(
                f"Nested step {action.label} can only be declared as an ordinary step"
            )
        return replace(action, kind=kind)

    def __iter__(self):
        return iter(self._declarations)

    def __len__(self) -> int:
        return len(self._declarations)


def _check_no_extra_nested(declaration: StepDeclaration, nested_steps: StepsLike) -> None:
    # a prebuilt declaration already carries its own nested steps
    if tuple(nested_steps):
        raise ChainDefinitionError(
            f"{declaration.label} is already declared; pass its nested steps to wrap() or nested()"
        )
