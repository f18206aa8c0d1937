"""Step-chain execution engine — flat, declarative business pipelines.

Public surface::

    from stepchain import (
        Chain,
        Steps,
        Context,
        Result,
        Success,
        Failure,
        PassFast,
        as_subprocess,
        nested,
        wrap,
        scoped,
        EngineConfig,
        ChainError,
        ChainDefinitionError,
        ChainNotImplementedError,
    )
"""

from .chain import Chain
from .config import EngineConfig
from .context import Context
from .declaration import (
    ChainRef,
    Closure,
    NamedOperation,
    StepDeclaration,
    StepKind,
    Steps,
    as_subprocess,
    nested,
    scoped,
    to_action,
    wrap,
)
from .errors import ChainDefinitionError, ChainError, ChainNotImplementedError
from .result import Failure, PassFast, Result, Success, is_failed_outcome, is_pass_fast

__all__ = [
    # Chains
    "Chain",
    "Steps",
    "Context",
    # Results
    "Result",
    "Success",
    "Failure",
    "PassFast",
    "is_pass_fast",
    "is_failed_outcome",
    # Declarations
    "StepDeclaration",
    "StepKind",
    "NamedOperation",
    "Closure",
    "ChainRef",
    "to_action",
    "as_subprocess",
    "nested",
    "wrap",
    "scoped",
    # Config and errors
    "EngineConfig",
    "ChainError",
    "ChainDefinitionError",
    "ChainNotImplementedError",
]
