"""Package descriptors — the unit of registration.

A package groups the classes of a metamodel under a globally unique
namespace URI. Packages are built either by hand through the builder API
below or from a loaded Ecore resource (see refload.ecore), and become
immutable once frozen by the registry.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import FrozenDescriptor
from .types import ClassDescriptor


@dataclass(eq=False)
class PackageDescriptor:
    """PackageDescriptor = (namespace_uri, classes)."""

    namespace_uri: str
    name: str = ""
    prefix: str = ""

    # Classes in declaration order
    classes: list[ClassDescriptor] = field(default_factory=list)

    _frozen: bool = field(default=False, repr=False)

    # -----------------------------------------------------------------------
    # Builder API
    # -----------------------------------------------------------------------

    def add_class(self, name: str, abstract: bool = False) -> ClassDescriptor:
        """Declare a class in this package."""
        if self._frozen:
            raise FrozenDescriptor(f"Package '{self.namespace_uri}' is frozen")
        if self.get_class(name) is not None:
            raise ValueError(
                f"Class '{name}' already exists in package '{self.namespace_uri}'"
            )
        cls = ClassDescriptor(name=name, abstract=abstract, package=self)
        self.classes.append(cls)
        return cls

    def freeze(self) -> None:
        """Make this package and all of its classes immutable."""
        self._frozen = True
        for cls in self.classes:
            cls.freeze()

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -----------------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------------

    def get_class(self, name: str) -> ClassDescriptor | None:
        for cls in self.classes:
            if cls.name == name:
                return cls
        return None

    def class_names(self) -> list[str]:
        return [cls.name for cls in self.classes]

    def __repr__(self) -> str:
        return (
            f"PackageDescriptor({self.name or self.namespace_uri}: "
            f"{len(self.classes)} classes)"
        )
