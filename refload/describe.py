"""Introspection reports for loaded metamodels and models.

Both reports are produced reflectively: a metamodel is read as a model
of Ecore instances, and a model is read through its runtime types only.
"""

from __future__ import annotations

import logging
from typing import Any

from .ecore import EATTRIBUTE, ECLASS, EREFERENCE, erased_classifier
from .model_object import ModelObject
from .resource import Resource
from .traversal import all_attributes, all_references, get

logger = logging.getLogger(__name__)


def _lineage(eclass: ModelObject, trail: tuple = ()) -> list[ModelObject]:
    """The EClass and its transitive eSuperTypes, nearest first, depth first."""
    result = [eclass]
    trail = (*trail, eclass)
    for supertype in eclass.get("eSuperTypes"):
        if any(supertype is t for t in trail):
            continue
        for candidate in _lineage(supertype, trail):
            if not any(candidate is seen for seen in result):
                result.append(candidate)
    return result


def _described_features(eclass: ModelObject) -> list[ModelObject]:
    """EStructuralFeature instances of an EClass, own first, then inherited."""
    features: list[ModelObject] = []
    seen: set[str] = set()
    for current in _lineage(eclass):
        for feature in current.get("eStructuralFeatures"):
            if feature.get("name") not in seen:
                seen.add(feature.get("name"))
                features.append(feature)
    return features


def _type_name(feature: ModelObject) -> str:
    etype = erased_classifier(feature)
    return etype.get("name") if etype is not None else "?"


def describe_metamodel(resource: Resource) -> list[str]:
    """List each EClass with its (inherited) attributes and references.

    Resources that hold no EClass instances produce no lines.
    """
    lines: list[str] = []
    for obj in resource.all_contents():
        if not obj.is_instance(ECLASS):
            continue
        lines.append(f"EClass {obj.get('name')}")
        features = _described_features(obj)
        for feature in features:
            if feature.is_instance(EATTRIBUTE):
                lines.append(f"\tAttribute {feature.get('name')} (type={_type_name(feature)})")
        for feature in features:
            if feature.is_instance(EREFERENCE):
                lines.append(f"\tReference {feature.get('name')} (type={_type_name(feature)})")
    return lines


def _format(value: Any) -> str:
    if isinstance(value, tuple):
        return "[" + ", ".join(_format(v) for v in value) + "]"
    return repr(value) if isinstance(value, ModelObject) else str(value)


def describe_model(resource: Resource) -> list[str]:
    """List every object with the value of each attribute and reference."""
    lines: list[str] = []
    for obj in resource.all_contents():
        lines.append(f"Instance of {obj.type.name}")
        for attr in all_attributes(obj):
            lines.append(f"\tAttribute '{attr.name}' = {_format(get(obj, attr))}")
        for ref in all_references(obj):
            lines.append(f"\tReference '{ref.name}' = {_format(get(obj, ref))}")
    return lines


def log_metamodel(resource: Resource) -> None:
    for line in describe_metamodel(resource):
        logger.info("%s", line)


def log_model(resource: Resource) -> None:
    for line in describe_model(resource):
        logger.info("%s", line)
