"""Reflective traversal — generic, read-only views over object graphs.

Everything here works from runtime type metadata alone:

  all_contents(root)   — depth-first, pre-order walk of the containment tree
  all_attributes(obj)  — declared + inherited attribute descriptors
  all_references(obj)  — declared + inherited reference descriptors
  get(obj, feature)    — current value of an attribute or reference

Plain (non-containment) references are never followed by the walk, so
cycles through links cannot make it loop.
"""

from __future__ import annotations

from typing import Any, Iterator

from .errors import ContainmentError, NoSuchFeature
from .model_object import ModelObject
from .types import AttributeDescriptor, ClassDescriptor, ReferenceDescriptor

Feature = AttributeDescriptor | ReferenceDescriptor


def all_contents(root: ModelObject) -> Iterator[ModelObject]:
    """Yield every object strictly contained by ``root``.

    Children are visited in containment-reference order, each subtree
    completely before the next sibling. Each call returns a fresh
    generator. An object reached twice means the containment graph is not
    a tree, which raises ContainmentError.
    """
    seen: set[int] = {id(root)}
    stack: list[ModelObject] = list(reversed(root.contents()))
    while stack:
        obj = stack.pop()
        if id(obj) in seen:
            raise ContainmentError(f"{obj!r} is reachable twice through containment")
        seen.add(id(obj))
        yield obj
        stack.extend(reversed(obj.contents()))


def all_attributes(obj: ModelObject) -> list[AttributeDescriptor]:
    """Attributes of ``obj``'s class, own first, then inherited."""
    return obj.type.all_attributes()


def all_references(obj: ModelObject) -> list[ReferenceDescriptor]:
    """References of ``obj``'s class, own first, then inherited."""
    return obj.type.all_references()


def all_features(obj: ModelObject) -> list[Feature]:
    return [*all_attributes(obj), *all_references(obj)]


def get(obj: ModelObject, feature: Feature | str) -> Any:
    """Read an attribute value or the target(s) of a reference.

    ``feature`` is a descriptor taken from the object's type (or a feature
    name). A descriptor belonging to another class raises NoSuchFeature.
    """
    if isinstance(feature, str):
        return obj.get(feature)
    if not obj.type.has_feature(feature):
        raise NoSuchFeature(obj.type.name, feature.name)
    return obj.get(feature.name)


def is_instance(obj: ModelObject, cls: ClassDescriptor) -> bool:
    return obj.is_instance(cls)


def eclass_name(obj: ModelObject) -> str:
    return obj.type.name
