"""RDF Bridge — exports metamodels and models as RDF graphs.

This bridge translates:
  1. PackageDescriptor → RDFS vocabulary
       class       → rdfs:Class (rdfs:subClassOf for supertypes)
       attribute   → rdf:Property, rdfs:range an XSD datatype
       reference   → rdf:Property, rdfs:range the target class,
                     refload:containment / refload:many flags
  2. Resource → RDF data graph
       object      → <resource-uri#fragment>, rdf:type its class
       attribute   → typed literal per value
       reference   → object property triple per target

Class URIs are ``<namespace-uri>#<ClassName>``; feature URIs are
``<namespace-uri>#<ClassName>.<feature>``, since two classes may declare
features with the same name.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable

from rdflib import BNode, Graph, Literal, Namespace, RDF, RDFS, URIRef, XSD

from .model_object import ModelObject
from .package import PackageDescriptor
from .resource import Resource
from .traversal import all_attributes, all_references
from .types import ClassDescriptor


# ---------------------------------------------------------------------------
# Namespace for refload annotations
# ---------------------------------------------------------------------------

REFLOAD = Namespace("http://refload.example.org/ns#")

_DEFAULT_BASE = "urn:refload:resource"


# ---------------------------------------------------------------------------
# Type mapping: attribute type names → XSD datatypes
# ---------------------------------------------------------------------------

_TYPE_MAP = {
    "EString": XSD.string,
    "EInt": XSD.int,
    "EIntegerObject": XSD.int,
    "EShort": XSD.short,
    "EShortObject": XSD.short,
    "ELong": XSD.long,
    "ELongObject": XSD.long,
    "EByte": XSD.byte,
    "EByteObject": XSD.byte,
    "EBigInteger": XSD.integer,
    "EFloat": XSD.float,
    "EFloatObject": XSD.float,
    "EDouble": XSD.double,
    "EDoubleObject": XSD.double,
    "EBigDecimal": XSD.decimal,
    "EBoolean": XSD.boolean,
    "EBooleanObject": XSD.boolean,
    "EDate": XSD.dateTime,
    "string": XSD.string,
    "int": XSD.int,
    "integer": XSD.integer,
    "long": XSD.long,
    "short": XSD.short,
    "byte": XSD.byte,
    "float": XSD.double,
    "double": XSD.double,
    "boolean": XSD.boolean,
}


def _term(namespace_uri: str | None, local: str) -> URIRef:
    base = namespace_uri or _DEFAULT_BASE
    if base.endswith(("#", "/")):
        return URIRef(f"{base}{local}")
    return URIRef(f"{base}#{local}")


def class_uri(cls: ClassDescriptor) -> URIRef:
    return _term(cls.namespace_uri, cls.name)


def feature_uri(cls: ClassDescriptor, feature_name: str) -> URIRef:
    """URI of a feature, qualified by the class that declares it."""
    for owner in [cls, *cls.all_supertypes()]:
        if any(f.name == feature_name for f in [*owner.attributes, *owner.references]):
            return _term(owner.namespace_uri, f"{owner.name}.{feature_name}")
    return _term(cls.namespace_uri, f"{cls.name}.{feature_name}")


# ---------------------------------------------------------------------------
# PackageDescriptor → RDFS
# ---------------------------------------------------------------------------

def package_to_rdfs(package: PackageDescriptor) -> Graph:
    """Translate a package into an RDFS vocabulary graph."""
    g = Graph()
    g.bind("refload", REFLOAD)
    g.bind("xsd", XSD)
    if package.prefix:
        g.bind(package.prefix, Namespace(str(_term(package.namespace_uri, ""))))

    for cls in package.classes:
        cu = class_uri(cls)
        g.add((cu, RDF.type, RDFS.Class))
        g.add((cu, RDFS.label, Literal(cls.name)))
        for sup in cls.supertypes:
            g.add((cu, RDFS.subClassOf, class_uri(sup)))
        if cls.abstract:
            g.add((cu, REFLOAD.abstract, Literal(True)))

        for attr in cls.attributes:
            pu = feature_uri(cls, attr.name)
            g.add((pu, RDF.type, RDF.Property))
            g.add((pu, RDFS.label, Literal(attr.name)))
            g.add((pu, RDFS.domain, cu))
            g.add((pu, RDFS.range, _TYPE_MAP.get(attr.value_type_name, RDFS.Literal)))
            g.add((pu, REFLOAD.many, Literal(attr.many)))
            for literal in attr.literals:
                g.add((pu, REFLOAD.literal, Literal(literal)))

        for ref in cls.references:
            pu = feature_uri(cls, ref.name)
            g.add((pu, RDF.type, RDF.Property))
            g.add((pu, RDFS.label, Literal(ref.name)))
            g.add((pu, RDFS.domain, cu))
            g.add((pu, RDFS.range, _term(ref.target_namespace, ref.target_class_name)))
            g.add((pu, REFLOAD.containment, Literal(ref.containment)))
            g.add((pu, REFLOAD.many, Literal(ref.many)))

    return g


# ---------------------------------------------------------------------------
# Resource → RDF data graph
# ---------------------------------------------------------------------------

class _Nodes:
    """Assigns one RDF node per object, across resources."""

    def __init__(self, resource: Resource, others: Iterable[Resource]) -> None:
        self.resources = [resource, *others]
        self._blank: dict[int, BNode] = {}

    def __call__(self, obj: ModelObject) -> URIRef | BNode:
        for resource in self.resources:
            if resource.contains(obj):
                base = resource.uri or _DEFAULT_BASE
                return URIRef(f"{base}#{resource.uri_fragment(obj)}")
        # Objects outside every known resource
        return self._blank.setdefault(id(obj), BNode())


def resource_to_rdf(resource: Resource, others: Iterable[Resource] = ()) -> Graph:
    """Translate every object of ``resource`` into RDF triples.

    ``others`` are resources that links may point into; their objects are
    named by their own fragments instead of blank nodes.
    """
    g = Graph()
    g.bind("refload", REFLOAD)
    node = _Nodes(resource, others)

    for obj in resource.all_contents():
        subject = node(obj)
        g.add((subject, RDF.type, class_uri(obj.type)))

        for attr in all_attributes(obj):
            if attr.name not in obj.attribute_values:
                continue
            value = obj.attribute_values[attr.name]
            datatype = _TYPE_MAP.get(attr.value_type_name)
            for item in (value if attr.many else [value]):
                if item is not None:
                    literal = _to_literal(item, datatype)
                    g.add((subject, feature_uri(obj.type, attr.name), literal))

        for ref in all_references(obj):
            for target in obj.reference_values.get(ref.name, []):
                g.add((subject, feature_uri(obj.type, ref.name), node(target)))

    return g


def _to_literal(value: Any, datatype: URIRef | None = None) -> Literal:
    """Convert a Python value to an RDF Literal with appropriate datatype.

    ``datatype`` is the range declared for the attribute, when known.
    """
    if datatype is not None:
        return Literal(value, datatype=datatype)
    if isinstance(value, bool):
        return Literal(value, datatype=XSD.boolean)
    if isinstance(value, int):
        return Literal(value, datatype=XSD.integer)
    if isinstance(value, float):
        return Literal(value, datatype=XSD.double)
    if isinstance(value, Decimal):
        return Literal(value, datatype=XSD.decimal)
    if isinstance(value, datetime):
        return Literal(value, datatype=XSD.dateTime)
    return Literal(str(value), datatype=XSD.string)
