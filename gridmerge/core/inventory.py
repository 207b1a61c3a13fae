from __future__ import annotations


class InventorySlot:
    """Holds at most one token. Callers decide when it may be filled."""

    __slots__ = ("_value",)

    def __init__(self, value: int | None = None) -> None:
        self._value = value

    def is_empty(self) -> bool:
        return self._value is None

    def peek(self) -> int | None:
        return self._value

    def set(self, value: int | None) -> None:
        self._value = value

    def take(self) -> int | None:
        value, self._value = self._value, None
        return value

    def __repr__(self) -> str:
        return f"InventorySlot({self._value!r})"
