from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from .codec import AttributeCodec
from .condition import Condition
from .errors import IncompatibleRecordError
from .key import Key


@runtime_checkable
class Entity(Protocol):
    def item(self) -> Any:
        """The record serialized into the stored item.

        It may or may not carry the key attributes; ``key()`` is overlaid on
        the serialized record and wins on conflict.
        """
        ...

    def key(self) -> Key: ...

    def condition_expression(self) -> Condition | None:
        """A guard pre-seeded by whoever built the entity.

        When set it replaces the guard the repository would otherwise derive
        from the key.
        """
        ...


@runtime_checkable
class HasRelated(Entity, Protocol):
    def related_entities(self) -> Sequence[Entity]:
        """Entities written in the same transaction as this one.

        Each related entity carries its own guard. Raising here aborts the
        save before anything is written.
        """
        ...


type Modeler[T] = Callable[[Mapping[str, Any]], T]


class ConditionHolder:
    def __init__(self, condition: Condition | None = None) -> None:
        self._condition = condition

    def set_condition_expression(self, condition: Condition | None) -> None:
        self._condition = condition

    def condition_expression(self) -> Condition | None:
        return self._condition


def record_modeler[R, T](
    record_type: type[R],
    build: Callable[[R], T],
    *,
    discriminant: tuple[str, str] | None = None,
    codec: AttributeCodec | None = None,
) -> Modeler[T]:
    """Build a modeler that decodes ``record_type`` and wraps it with ``build``.

    ``discriminant`` is an ``(attribute, expected value)`` pair checked on the
    raw item before decoding; items of another kind are refused with
    ``IncompatibleRecordError``.
    """
    resolved = codec or AttributeCodec()

    def modeler(item: Mapping[str, Any]) -> T:
        if discriminant is not None:
            attribute, expected = discriminant
            raw = item.get(attribute)
            actual = raw.get("S") if isinstance(raw, Mapping) else None
            if actual != expected:
                raise IncompatibleRecordError(expected=expected, actual=actual)
        return build(resolved.decode(item, record_type))

    return modeler
