"""Program states: total valuations from identifiers to integers.

A State is a persistent value. Identifiers without an explicit binding hold
the state's default, so the domain is conceptually every identifier.
Bindings equal to the default are not stored, which makes equality and
hashing depend only on observable content.
"""

from __future__ import annotations

from typing import Dict, Iterator, Mapping, Optional, Tuple

from hoareup.ast_nodes import Identifier


class State:
    """Total function Identifier -> int."""

    __slots__ = ("_values", "_default")

    def __init__(self, values: Optional[Mapping[Identifier, int]] = None,
                 default: int = 0) -> None:
        self._default = default
        self._values: Dict[Identifier, int] = {
            k: v for k, v in (values or {}).items() if v != default
        }

    @property
    def default(self) -> int:
        return self._default

    def get(self, ident: Identifier) -> int:
        return self._values.get(ident, self._default)

    __getitem__ = get

    def set(self, ident: Identifier, value: int) -> "State":
        """Return the state that differs from this one at ``ident`` only."""
        values = dict(self._values)
        values[ident] = value
        return State(values, self._default)

    def bindings(self) -> Iterator[Tuple[Identifier, int]]:
        """Explicit bindings, i.e. those that differ from the default."""
        return iter(sorted(self._values.items()))

    def restrict(self, idents) -> Dict[Identifier, int]:
        return {i: self.get(i) for i in idents}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, State):
            return NotImplemented
        return self._default == other._default and self._values == other._values

    def __hash__(self) -> int:
        return hash((self._default, frozenset(self._values.items())))

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}: {v}" for k, v in self.bindings())
        return f"State({{{inner}}}, default={self._default})"
