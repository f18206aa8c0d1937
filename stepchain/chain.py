"""Chain base class — definition-time compilation and invocation."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping, MutableMapping
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Optional

from .config import EngineConfig
from .context import Context
from .declaration import NamedOperation, StepsLike, freeze_steps
from .engine import RunState, execute
from .errors import ChainDefinitionError, ChainNotImplementedError
from .result import Failure, PassFast, Result, Success

logger = logging.getLogger(__name__)


class Chain:
    """Base class for step chains.

    Subclasses declare their steps in the class body; named operations are
    ordinary methods taking the context plus its entries as keyword
    arguments.  Make the parameters positional-only so context entries
    named ``ctx`` or ``self`` cannot clash with them::

        class Register(Chain):
            steps = (
                Steps()
                .step("validate")
                .step(as_subprocess(CreateAccount))
                .pass_(send_welcome_email)
                .fail("report")
            )

            def validate(self, ctx, /, *, email=None, **_):
                return bool(email)

            def report(self, ctx, /, **_):
                ctx["error"] = "registration failed"

        result = Register.call(email="a@example.com")
        result.is_success

    When the class is defined, the declarations are frozen into a tuple,
    named operations are checked against the class, and each nested step
    list is compiled once into an anonymous subclass of the declaring chain
    (so nested named operations resolve against the same methods).

    A chain without steps must override :meth:`perform` instead.
    """

    steps: ClassVar[StepsLike] = ()
    config: ClassVar[EngineConfig] = EngineConfig()

    operations: ClassVar[Mapping[str, Any]] = MappingProxyType({})
    sub_chains: ClassVar[Mapping[int, type["Chain"]]] = MappingProxyType({})

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.steps = freeze_steps(cls.steps)
        cls.operations = MappingProxyType(_collect_operations(cls))
        cls.sub_chains = MappingProxyType(_compile_sub_chains(cls))

    def __init__(self, ctx: Context) -> None:
        self.state = RunState(ctx)

    @property
    def ctx(self) -> Context:
        return self.state.ctx

    @classmethod
    def call(cls, context: Optional[Mapping[str, Any]] = None, /, **values: Any) -> Result:
        """Invoke the chain and return its terminal result.

        Args:
            context: A :class:`Context` or mutable mapping to run against.
                Mutable mappings are wrapped by reference, so they see every
                write; read-only mappings are copied.  Nested chains receive
                the same object.  A new one is created when omitted.
            **values: Initial entries, merged into *context* when both are given.

        Raises:
            ChainNotImplementedError: The chain declares no steps and does
                not override :meth:`perform`.
        """
        return execute(cls(_adopt_context(context, values)))

    def perform(self) -> Any:
        """Single operation used when no steps are declared."""
        raise ChainNotImplementedError(
            f"{type(self).__qualname__} declares no steps and does not override perform()"
        )

    def success(self) -> Success:
        return Success(self.ctx)

    def failure(self) -> Failure:
        return Failure(self.ctx, self.state.failed_step)

    def pass_fast(self) -> PassFast:
        return PassFast(self.ctx)

    def resolve_operation(self, name: str) -> Callable[..., Any]:
        """Return the named operation bound to this instance."""
        raw = type(self).operations.get(name)
        if raw is None:
            raw = inspect.getattr_static(type(self), name, None)
        if raw is None:
            raise ChainDefinitionError(f"{type(self).__qualname__} has no operation {name!r}")
        bound = raw.__get__(self, type(self)) if hasattr(raw, "__get__") else raw
        if not callable(bound):
            raise ChainDefinitionError(f"{type(self).__qualname__}.{name} is not callable")
        return bound


def _adopt_context(context: Optional[Mapping[str, Any]], values: dict[str, Any]) -> Context:
    if context is None:
        return Context(**values)
    if isinstance(context, Context):
        pass
    elif isinstance(context, MutableMapping):
        context = Context(context)
    elif isinstance(context, Mapping):
        # read-only mappings cannot receive the run's writes
        context = Context(dict(context))
    else:
        raise TypeError(f"Expected a Context or mapping, got {type(context).__name__}")
    context.update(values)
    return context


def _collect_operations(cls: type[Chain]) -> dict[str, Any]:
    table: dict[str, Any] = {}
    for declaration in cls.steps:
        action = declaration.action
        if not isinstance(action, NamedOperation) or action.name in table:
            continue
        raw = inspect.getattr_static(cls, action.name, None)
        if raw is None:
            if cls.config.validate_operations:
                raise ChainDefinitionError(
                    f"{cls.__qualname__}: step {declaration.label} names a missing operation"
                )
            logger.debug("%s: %s left unresolved", cls.__qualname__, declaration.label)
            continue
        table[action.name] = raw
    return table


def _compile_sub_chains(cls: type[Chain]) -> dict[int, type[Chain]]:
    compiled: dict[int, type[Chain]] = {}
    for index, declaration in enumerate(cls.steps):
        if not declaration.nested_steps:
            continue
        namespace = {
            "steps": declaration.nested_steps,
            "__module__": cls.__module__,
            "__qualname__": f"{cls.__qualname__}[{index}:{declaration.label}]",
        }
        compiled[index] = type(f"{cls.__name__}_{index}", (cls,), namespace)
    return compiled
