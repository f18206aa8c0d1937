"""Fatal error types for the step-chain engine.

These cover programming errors only.  A step that returns a falsy value
is a normal outcome and produces a :class:`~stepchain.result.Failure`,
never an exception.
"""

from __future__ import annotations


class ChainError(Exception):
    """Base class for every error raised by the engine itself."""


class ChainNotImplementedError(ChainError, NotImplementedError):
    """Raised when a chain with no declared steps does not override ``perform``."""


class ChainDefinitionError(ChainError, ValueError):
    """Raised when a step declaration is invalid or cannot be resolved.

    Most checks run when the chain class is defined.  Named operations
    returned dynamically by ``nested`` steps are only checked at dispatch.
    """
