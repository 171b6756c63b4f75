"""Values that are derived from other inputs unless explicitly overridden."""
from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

__all__ = ["DerivedField", "OverridableProperty"]

T = TypeVar("T")

_UNSET: Any = object()


class DerivedField(Generic[T]):
    """Holds an optional explicit value in front of a derivation.

    ``get()`` returns the explicit value when one is set and the result of
    ``derive()`` otherwise. Setting ``None`` removes the explicit value.
    """

    def __init__(
        self,
        derive: Callable[[], T],
        *,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._derive = derive
        self._on_change = on_change
        self._value: Any = _UNSET

    def get(self) -> T:
        if self._value is not _UNSET:
            return self._value
        return self._derive()

    def set(self, value: T | None) -> None:
        self._value = _UNSET if value is None else value
        if self._on_change is not None:
            self._on_change()

    def clear(self) -> None:
        self.set(None)

    def is_overridden(self) -> bool:
        return self._value is not _UNSET

    @property
    def raw(self) -> T | None:
        """The explicit value, or ``None`` when the field is derived."""

        if self._value is _UNSET:
            return None
        return self._value


class OverridableProperty:
    """Exposes the :class:`DerivedField` stored at ``_<name>`` as attribute ``<name>``."""

    def __init__(self, doc: str | None = None) -> None:
        self.__doc__ = doc
        self.name = ""
        self.field_name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        self.field_name = f"_{name}"

    def field(self, instance: Any) -> DerivedField[Any]:
        return getattr(instance, self.field_name)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return self.field(instance).get()

    def __set__(self, instance: Any, value: Any) -> None:
        self.field(instance).set(value)
