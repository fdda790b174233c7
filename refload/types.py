"""Type descriptors — a metamodel held as plain data.

A metamodel is a set of packages. Each package holds classes, each class
holds typed attributes and references to other classes:

  PackageDescriptor = (namespace_uri, classes)
  ClassDescriptor   = (name, attributes, references, supertypes)
  AttributeDescriptor = (name, value_type_name)
  ReferenceDescriptor = (name, target_class_name, containment)

Nothing here is a Python class generated for the modeled type. Identity of a
ClassDescriptor is object identity, and "is X an instance of Y" is answered
by walking the supertype lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator

from .config import ECORE_NS_URI
from .errors import FrozenDescriptor

if TYPE_CHECKING:
    from .package import PackageDescriptor

# Every modeled object is an EObject
_ROOT_CLASS = f"{ECORE_NS_URI}#EObject"


# ---------------------------------------------------------------------------
# AttributeDescriptor — a typed slot holding literal values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AttributeDescriptor:
    """A primitive or enumerated attribute of a class.

    ``literals`` is non-empty when the value type is an enumeration; the
    loader then only accepts one of the listed literal names.
    """
    name: str
    value_type_name: str
    many: bool = False
    literals: tuple[str, ...] = ()
    default: Any = None

    @property
    def is_enum(self) -> bool:
        return bool(self.literals)

    def __repr__(self) -> str:
        suffix = "[*]" if self.many else ""
        return f"Attr({self.name}: {self.value_type_name}{suffix})"


# ---------------------------------------------------------------------------
# ReferenceDescriptor — a typed link to instances of another class
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReferenceDescriptor:
    """A reference to another class.

    Containment references own their targets and form a tree; plain
    references are links and may form cycles. ``target_namespace`` is the
    namespace URI of the target class, or None for the owner's package.
    """
    name: str
    target_class_name: str
    containment: bool = False
    many: bool = False
    target_namespace: str | None = None

    def __repr__(self) -> str:
        kind = "<>" if self.containment else "->"
        suffix = "[*]" if self.many else ""
        return f"Ref({self.name} {kind} {self.target_class_name}{suffix})"


# ---------------------------------------------------------------------------
# ClassDescriptor — a class of the metamodel
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class ClassDescriptor:
    """A class described as data.

    Builder methods mutate the descriptor until its package is frozen
    (which happens on registration). Lookups include inherited features:
    own descriptors first, then each supertype's in declaration order.
    """

    name: str
    abstract: bool = False
    attributes: list[AttributeDescriptor] = field(default_factory=list)
    references: list[ReferenceDescriptor] = field(default_factory=list)
    supertypes: list[ClassDescriptor] = field(default_factory=list, repr=False)
    package: PackageDescriptor | None = field(default=None, repr=False)
    _frozen: bool = field(default=False, repr=False)

    # -----------------------------------------------------------------------
    # Builder API
    # -----------------------------------------------------------------------

    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenDescriptor(f"Class '{self.name}' is frozen")

    def _check_new_feature(self, name: str) -> None:
        self._check_mutable()
        if any(f.name == name for f in self.features()):
            raise ValueError(f"Feature '{name}' already declared on '{self.name}'")

    def add_attribute(
        self,
        name: str,
        value_type_name: str,
        many: bool = False,
        literals: tuple[str, ...] = (),
        default: Any = None,
    ) -> AttributeDescriptor:
        """Declare an attribute on this class."""
        self._check_new_feature(name)
        attr = AttributeDescriptor(
            name=name,
            value_type_name=value_type_name,
            many=many,
            literals=tuple(literals),
            default=default,
        )
        self.attributes.append(attr)
        return attr

    def add_reference(
        self,
        name: str,
        target_class_name: str,
        containment: bool = False,
        many: bool = False,
        target_namespace: str | None = None,
    ) -> ReferenceDescriptor:
        """Declare a reference to another class."""
        self._check_new_feature(name)
        if target_namespace is None and self.package is not None:
            target_namespace = self.package.namespace_uri
        ref = ReferenceDescriptor(
            name=name,
            target_class_name=target_class_name,
            containment=containment,
            many=many,
            target_namespace=target_namespace,
        )
        self.references.append(ref)
        return ref

    def add_supertype(self, supertype: ClassDescriptor) -> None:
        """Declare a direct supertype."""
        self._check_mutable()
        if supertype is self or self.is_super_type_of(supertype):
            raise ValueError(
                f"'{supertype.name}' cannot be a supertype of '{self.name}': "
                f"inheritance cycle"
            )
        if supertype not in self.supertypes:
            self.supertypes.append(supertype)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -----------------------------------------------------------------------
    # Inheritance
    # -----------------------------------------------------------------------

    def all_supertypes(self) -> list[ClassDescriptor]:
        """Return transitive supertypes, nearest first, each once."""
        result: list[ClassDescriptor] = []
        for sup in self.supertypes:
            for candidate in [sup, *sup.all_supertypes()]:
                if candidate not in result:
                    result.append(candidate)
        return result

    def is_super_type_of(self, other: ClassDescriptor) -> bool:
        """True if instances of ``other`` are instances of this class.

        Ecore's EObject is the implicit supertype of every class.
        """
        if self.qualified_name == _ROOT_CLASS:
            return True
        return other is self or any(s is self for s in other.all_supertypes())

    def _lineage(self) -> Iterator[ClassDescriptor]:
        yield self
        yield from self.all_supertypes()

    def all_attributes(self) -> list[AttributeDescriptor]:
        """Own attributes, then inherited ones by supertype order."""
        seen: set[str] = set()
        result: list[AttributeDescriptor] = []
        for cls in self._lineage():
            for attr in cls.attributes:
                if attr.name not in seen:
                    seen.add(attr.name)
                    result.append(attr)
        return result

    def all_references(self) -> list[ReferenceDescriptor]:
        """Own references, then inherited ones by supertype order."""
        seen: set[str] = set()
        result: list[ReferenceDescriptor] = []
        for cls in self._lineage():
            for ref in cls.references:
                if ref.name not in seen:
                    seen.add(ref.name)
                    result.append(ref)
        return result

    def all_containments(self) -> list[ReferenceDescriptor]:
        return [r for r in self.all_references() if r.containment]

    def features(self) -> list[AttributeDescriptor | ReferenceDescriptor]:
        return [*self.all_attributes(), *self.all_references()]

    # -----------------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------------

    def get_attribute(self, name: str) -> AttributeDescriptor | None:
        for attr in self.all_attributes():
            if attr.name == name:
                return attr
        return None

    def get_reference(self, name: str) -> ReferenceDescriptor | None:
        for ref in self.all_references():
            if ref.name == name:
                return ref
        return None

    def feature(self, name: str) -> AttributeDescriptor | ReferenceDescriptor | None:
        """Look up an attribute or reference, own or inherited, by name."""
        return self.get_attribute(name) or self.get_reference(name)

    def has_feature(self, descriptor: AttributeDescriptor | ReferenceDescriptor) -> bool:
        """True if ``descriptor`` is one of this class's (inherited) features."""
        return any(f is descriptor for f in self.features())

    @property
    def namespace_uri(self) -> str | None:
        return self.package.namespace_uri if self.package is not None else None

    @property
    def qualified_name(self) -> str:
        if self.package is None:
            return self.name
        return f"{self.package.namespace_uri}#{self.name}"

    def __repr__(self) -> str:
        return f"Class({self.name})"
