"""Typed notification keys.

A :class:`Key` binds a unique identifier to the payload type carried under
it. Keys are declared once, usually as attributes of a plain namespace class,
and both publishers and subscribers reference that shared declaration::

    class Names:
        person: Key[Person] = new_key(Person)

    hub.subscribe(Names.person)
    hub.publish(Names.person, Person(name="test1", age=20))

Type checkers see ``Key[Person]`` and reject a publish of anything else.
"""

from __future__ import annotations

import typing
import uuid
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Key(Generic[T]):
    """Unique, type-tagged topic identifier. Compared and hashed by ``id``."""

    model: Any = field(compare=False)
    name: Optional[str] = field(default=None, compare=False)
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __set_name__(self, owner: type, attr: str) -> None:
        # Declared as a class attribute: pick up "Owner.attr" unless named explicitly
        if self.name is None:
            object.__setattr__(self, "name", f"{owner.__name__}.{attr}")

    @property
    def label(self) -> str:
        return self.name or str(self.id)

    def accepts(self, value: Any) -> bool:
        """Best-effort runtime check of ``value`` against the payload type.

        Only plain classes can be checked with ``isinstance``; typing forms
        such as ``Any``, ``dict[str, int]`` or unions always accept.
        """
        model = self.model
        if model is Any or model is None:
            return True
        if typing.get_origin(model) is not None:
            return True
        if not isinstance(model, type):
            return True
        return isinstance(value, model)

    def __repr__(self) -> str:
        model_name = getattr(self.model, "__name__", repr(self.model))
        return f"Key[{model_name}]({self.label})"


def new_key(model: type[T], name: str | None = None) -> Key[T]:
    """Allocate a fresh key for payloads of type ``model``."""
    return Key(model=model, name=name)
