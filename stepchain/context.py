"""Mutable step context — the single object shared by every step of a run."""

from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from typing import Any, Optional


class Context(MutableMapping):
    """String-keyed store threaded through a chain invocation.

    One context is created per top-level call and passed *by reference* to
    every step, wrap entity and subprocess, so a mutation made anywhere is
    visible everywhere else in the same run.

    Keys must be strings: named operations receive the entries spread as
    keyword arguments (``method(ctx, **ctx)``).  Declare the parameters
    positional-only (``def op(self, ctx, /, **values)``) so entries named
    ``ctx`` or ``self`` still bind.

    Args:
        data: Optional mutable mapping to adopt (a ``dict``, ``UserDict``,
            ``ChainMap``...).  It is wrapped, not copied, so the caller's
            mapping observes every mutation made during the run.
        **values: Initial entries, applied on top of ``data``.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[MutableMapping[str, Any]] = None, /, **values: Any) -> None:
        self._data: MutableMapping[str, Any] = data if data is not None else {}
        for key in self._data:
            self._check_key(key)
        self.update(values)

    @staticmethod
    def _check_key(key: Any) -> None:
        if not isinstance(key, str):
            raise TypeError(f"Context keys must be str, got {type(key).__name__}: {key!r}")

    @property
    def data(self) -> MutableMapping[str, Any]:
        """The live underlying mapping (all entries)."""
        return self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._check_key(key)
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Context({self._data!r})"
