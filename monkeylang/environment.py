"""Name bindings with lexical nesting."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from monkeylang.objects import MonkeyObject

_MISSING = object()


class Environment:
    """A scope of bindings that falls back to an enclosing scope on lookup."""

    def __init__(self, outer: Environment | None = None) -> None:
        self._store: dict[str, MonkeyObject] = {}
        self.outer = outer

    def get(self, name: str, default: MonkeyObject | None = None) -> MonkeyObject | None:
        """Return the value bound to ``name`` here or in an outer scope."""
        value = self._lookup(name)
        return default if value is _MISSING else value

    def set(self, name: str, value: MonkeyObject) -> MonkeyObject:
        """Bind ``name`` in this scope and return the value."""
        self._store[name] = value
        return value

    def enclosed(self) -> Environment:
        """Return a new scope nested inside this one."""
        return Environment(outer=self)

    def __getitem__(self, name: str) -> MonkeyObject:
        value = self._lookup(name)
        if value is _MISSING:
            raise KeyError(name)
        return value

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._lookup(name) is not _MISSING

    def _lookup(self, name: str):
        env: Environment | None = self
        while env is not None:
            if name in env._store:
                return env._store[name]
            env = env.outer
        return _MISSING