"""Model objects — instances typed by a ClassDescriptor at runtime.

A ModelObject has no Python class of its own. Its type is a shared
ClassDescriptor, and every value it holds is keyed by the name of one of
that descriptor's (inherited) features.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from .errors import ContainmentError, NoSuchFeature
from .types import AttributeDescriptor, ClassDescriptor, ReferenceDescriptor


@dataclass(eq=False, repr=False)
class ModelObject:
    """An instance of a metamodel class."""

    type: ClassDescriptor
    attribute_values: dict[str, Any] = field(default_factory=dict)
    reference_values: dict[str, list[ModelObject]] = field(default_factory=dict)

    # Set when the object is the target of a containment reference
    container: ModelObject | None = None
    containing_reference: ReferenceDescriptor | None = None

    xmi_id: str | None = None

    # -----------------------------------------------------------------------
    # Feature lookup
    # -----------------------------------------------------------------------

    def _attribute(self, name: str) -> AttributeDescriptor:
        attr = self.type.get_attribute(name)
        if attr is None:
            raise NoSuchFeature(self.type.name, name)
        return attr

    def _reference(self, name: str) -> ReferenceDescriptor:
        ref = self.type.get_reference(name)
        if ref is None:
            raise NoSuchFeature(self.type.name, name)
        return ref

    # -----------------------------------------------------------------------
    # Mutation (used while a graph is being built)
    # -----------------------------------------------------------------------

    def set_attribute(self, name: str, value: Any) -> None:
        """Set an attribute value; many-valued attributes take a list."""
        attr = self._attribute(name)
        if attr.many:
            value = list(value)
        self.attribute_values[name] = value

    def add_attribute_value(self, name: str, value: Any) -> None:
        """Append one value to a many-valued attribute."""
        attr = self._attribute(name)
        if not attr.many:
            raise ValueError(f"Attribute '{name}' of '{self.type.name}' is single-valued")
        self.attribute_values.setdefault(name, []).append(value)

    def add_reference_target(self, name: str, target: ModelObject) -> None:
        """Link ``target`` through reference ``name``.

        Containment references record this object as the target's
        container. A target that already has a container, or that is this
        object or one of its containers, is rejected.
        """
        ref = self._reference(name)
        targets = self.reference_values.setdefault(name, [])
        if not ref.many and targets:
            raise ValueError(f"Reference '{name}' of '{self.type.name}' is single-valued")
        if ref.containment:
            if target.container is not None:
                raise ContainmentError(
                    f"{target!r} is already contained by {target.container!r}"
                )
            if target is self or target in self.containers():
                raise ContainmentError(
                    f"Containing {target!r} in {self!r} would create a cycle"
                )
            target.container = self
            target.containing_reference = ref
        targets.append(target)

    # -----------------------------------------------------------------------
    # Reading
    # -----------------------------------------------------------------------

    def get(self, name: str) -> Any:
        """Return an attribute value or the target(s) of a reference.

        Unset attributes yield their declared default (an empty tuple when
        many-valued). Single-valued references yield an object or None,
        many-valued ones a tuple.
        """
        attr = self.type.get_attribute(name)
        if attr is not None:
            if name in self.attribute_values:
                value = self.attribute_values[name]
                return tuple(value) if attr.many else value
            return () if attr.many else attr.default
        ref = self._reference(name)
        targets = self.reference_values.get(name, [])
        if ref.many:
            return tuple(targets)
        return targets[0] if targets else None

    def is_set(self, name: str) -> bool:
        if self.type.feature(name) is None:
            raise NoSuchFeature(self.type.name, name)
        return bool(self.attribute_values.get(name) is not None
                    or self.reference_values.get(name))

    def is_instance(self, cls: ClassDescriptor) -> bool:
        """Dynamic type check: is this object's class ``cls`` or a subclass."""
        return cls.is_super_type_of(self.type)

    def containers(self) -> Iterator[ModelObject]:
        """Yield the container chain, nearest first."""
        current = self.container
        while current is not None:
            yield current
            current = current.container

    def root(self) -> ModelObject:
        current = self
        while current.container is not None:
            current = current.container
        return current

    def contents(self) -> list[ModelObject]:
        """Directly contained objects, in containment-reference order."""
        children: list[ModelObject] = []
        for ref in self.type.all_containments():
            children.extend(self.reference_values.get(ref.name, []))
        return children

    @property
    def name(self) -> Any:
        """The ``name`` attribute when the class declares one, else None."""
        if self.type.get_attribute("name") is None:
            return None
        return self.attribute_values.get("name")

    def __repr__(self) -> str:
        label = self.name
        if label is not None:
            return f"{self.type.name}(name={label!r})"
        return f"{self.type.name}@{id(self):x}"
