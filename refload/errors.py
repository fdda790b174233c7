"""Error taxonomy for loading and introspecting reflective models.

Every failure raised by refload derives from RefloadError and carries the
offending names as attributes, so a caller can diagnose a failed load
without re-parsing the input.
"""

from __future__ import annotations


class RefloadError(Exception):
    """Base class for all refload failures."""


class MalformedStream(RefloadError):
    """The input could not be decoded into an object graph."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)


class UnknownPackage(RefloadError):
    """No package is registered under the namespace URI."""

    def __init__(self, namespace_uri: str) -> None:
        self.namespace_uri = namespace_uri
        super().__init__(f"Unknown package '{namespace_uri}'")


class UnknownClass(RefloadError):
    """The package is registered but declares no class with that name."""

    def __init__(self, namespace_uri: str, class_name: str) -> None:
        self.namespace_uri = namespace_uri
        self.class_name = class_name
        super().__init__(f"Unknown class '{class_name}' in package '{namespace_uri}'")


class AttributeTypeMismatch(RefloadError):
    """An attribute literal cannot be converted to its declared type."""

    def __init__(self, attribute: str, expected: str, literal: str) -> None:
        self.attribute = attribute
        self.expected = expected
        self.literal = literal
        super().__init__(
            f"Attribute '{attribute}' expects {expected}, found {literal!r}"
        )


class UnresolvedReference(RefloadError):
    """A link still pointed nowhere once the whole stream was read."""

    def __init__(self, reference: str, identifier: str) -> None:
        self.reference = reference
        self.identifier = identifier
        super().__init__(f"Unresolved reference '{reference}' -> '{identifier}'")


class NoSuchFeature(RefloadError):
    """The feature does not belong to the object's type."""

    def __init__(self, type_name: str, feature: str) -> None:
        self.type_name = type_name
        self.feature = feature
        super().__init__(f"Class '{type_name}' has no feature '{feature}'")


class ContainmentError(RefloadError):
    """A containment edge would give an object two containers or a cycle."""


class FrozenDescriptor(RefloadError):
    """A registered descriptor was modified."""
