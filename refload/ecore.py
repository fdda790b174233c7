"""The built-in Ecore metamodel and the metamodel bootstrap.

A metamodel file (``.ecore``) is itself a model: its objects are instances
of EPackage, EClass, EAttribute, EReference ... Those classes are described
here once, as an always-available PackageDescriptor, so a metamodel can be
loaded by the ordinary loader before anything is registered:

  resource = load_metamodel("graph.ecore")           # Ecore instances
  packages = register_packages(registry, resource)   # → PackageDescriptors
  model    = load("graph.xmi", registry.resolve)     # Graph instances

``packages_from_resource`` is the bridge between the two worlds: it reads
EClass/EAttribute/EReference instances reflectively and turns them into
descriptors.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from .config import ECORE_NS_URI, UNBOUNDED, LoadOptions
from .errors import UnknownClass
from .literals import coerce, intrinsic_default
from .loader import Source, TypeResolver, load
from .model_object import ModelObject
from .package import PackageDescriptor
from .registry import TypeRegistry
from .resource import Resource
from .types import AttributeDescriptor, ClassDescriptor

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# The Ecore package, described as data
# ---------------------------------------------------------------------------

def _build_ecore_package() -> PackageDescriptor:
    pkg = PackageDescriptor(namespace_uri=ECORE_NS_URI, name="ecore", prefix="ecore")

    pkg.add_class("EObject")
    model_element = pkg.add_class("EModelElement", abstract=True)
    annotation = pkg.add_class("EAnnotation")
    map_entry = pkg.add_class("EStringToStringMapEntry")
    named_element = pkg.add_class("ENamedElement", abstract=True)
    epackage = pkg.add_class("EPackage")
    classifier = pkg.add_class("EClassifier", abstract=True)
    eclass = pkg.add_class("EClass")
    datatype = pkg.add_class("EDataType")
    eenum = pkg.add_class("EEnum")
    literal = pkg.add_class("EEnumLiteral")
    typed_element = pkg.add_class("ETypedElement", abstract=True)
    feature = pkg.add_class("EStructuralFeature", abstract=True)
    attribute = pkg.add_class("EAttribute")
    reference = pkg.add_class("EReference")
    operation = pkg.add_class("EOperation")
    parameter = pkg.add_class("EParameter")
    generic_type = pkg.add_class("EGenericType")
    type_parameter = pkg.add_class("ETypeParameter")

    # Inheritance
    annotation.add_supertype(model_element)
    named_element.add_supertype(model_element)
    epackage.add_supertype(named_element)
    classifier.add_supertype(named_element)
    eclass.add_supertype(classifier)
    datatype.add_supertype(classifier)
    eenum.add_supertype(datatype)
    literal.add_supertype(named_element)
    typed_element.add_supertype(named_element)
    feature.add_supertype(typed_element)
    attribute.add_supertype(feature)
    reference.add_supertype(feature)
    operation.add_supertype(typed_element)
    parameter.add_supertype(typed_element)
    type_parameter.add_supertype(named_element)

    model_element.add_reference("eAnnotations", "EAnnotation", containment=True, many=True)

    annotation.add_attribute("source", "EString")
    annotation.add_reference("details", "EStringToStringMapEntry", containment=True, many=True)
    annotation.add_reference("contents", "EObject", containment=True, many=True)
    annotation.add_reference("references", "EObject", many=True)

    map_entry.add_attribute("key", "EString")
    map_entry.add_attribute("value", "EString")

    named_element.add_attribute("name", "EString")

    epackage.add_attribute("nsURI", "EString")
    epackage.add_attribute("nsPrefix", "EString")
    epackage.add_reference("eClassifiers", "EClassifier", containment=True, many=True)
    epackage.add_reference("eSubpackages", "EPackage", containment=True, many=True)

    classifier.add_attribute("instanceClassName", "EString")
    classifier.add_attribute("instanceTypeName", "EString")
    classifier.add_reference("eTypeParameters", "ETypeParameter", containment=True, many=True)

    eclass.add_attribute("abstract", "EBoolean", default=False)
    eclass.add_attribute("interface", "EBoolean", default=False)
    eclass.add_reference("eSuperTypes", "EClass", many=True)
    eclass.add_reference("eStructuralFeatures", "EStructuralFeature", containment=True, many=True)
    eclass.add_reference("eOperations", "EOperation", containment=True, many=True)
    eclass.add_reference("eGenericSuperTypes", "EGenericType", containment=True, many=True)

    datatype.add_attribute("serializable", "EBoolean", default=True)

    eenum.add_reference("eLiterals", "EEnumLiteral", containment=True, many=True)

    literal.add_attribute("value", "EInt", default=0)
    literal.add_attribute("literal", "EString")

    typed_element.add_attribute("ordered", "EBoolean", default=True)
    typed_element.add_attribute("unique", "EBoolean", default=True)
    typed_element.add_attribute("lowerBound", "EInt", default=0)
    typed_element.add_attribute("upperBound", "EInt", default=1)
    typed_element.add_reference("eType", "EClassifier")
    typed_element.add_reference("eGenericType", "EGenericType", containment=True)

    feature.add_attribute("changeable", "EBoolean", default=True)
    feature.add_attribute("volatile", "EBoolean", default=False)
    feature.add_attribute("transient", "EBoolean", default=False)
    feature.add_attribute("defaultValueLiteral", "EString")
    feature.add_attribute("unsettable", "EBoolean", default=False)
    feature.add_attribute("derived", "EBoolean", default=False)

    attribute.add_attribute("iD", "EBoolean", default=False)

    reference.add_attribute("containment", "EBoolean", default=False)
    reference.add_attribute("resolveProxies", "EBoolean", default=True)
    reference.add_reference("eOpposite", "EReference")
    reference.add_reference("eKeys", "EAttribute", many=True)

    operation.add_reference("eParameters", "EParameter", containment=True, many=True)
    operation.add_reference("eExceptions", "EClassifier", many=True)
    operation.add_reference("eTypeParameters", "ETypeParameter", containment=True, many=True)
    operation.add_reference("eGenericExceptions", "EGenericType", containment=True, many=True)

    generic_type.add_reference("eClassifier", "EClassifier")
    generic_type.add_reference("eTypeArguments", "EGenericType", containment=True, many=True)
    generic_type.add_reference("eTypeParameter", "ETypeParameter")
    generic_type.add_reference("eUpperBound", "EGenericType", containment=True)
    generic_type.add_reference("eLowerBound", "EGenericType", containment=True)

    type_parameter.add_reference("eBounds", "EGenericType", containment=True, many=True)

    pkg.freeze()
    return pkg


ECORE = _build_ecore_package()

EOBJECT = ECORE.get_class("EObject")
EPACKAGE = ECORE.get_class("EPackage")
ECLASS = ECORE.get_class("EClass")
EDATATYPE = ECORE.get_class("EDataType")
EENUM = ECORE.get_class("EEnum")
EATTRIBUTE = ECORE.get_class("EAttribute")
EREFERENCE = ECORE.get_class("EReference")


# ---------------------------------------------------------------------------
# Built-in data types, addressable as
# http://www.eclipse.org/emf/2002/Ecore#//EString
# ---------------------------------------------------------------------------

DATATYPE_NAMES = (
    "EString", "EBoolean", "EInt", "ELong", "EShort", "EByte", "EChar",
    "EFloat", "EDouble", "EBigDecimal", "EBigInteger", "EDate",
    "EBooleanObject", "EIntegerObject", "ELongObject", "EShortObject",
    "EByteObject", "ECharacterObject", "EFloatObject", "EDoubleObject",
    "EByteArray", "EJavaObject", "EJavaClass",
)


def _build_datatypes_resource() -> Resource:
    root = ModelObject(type=EPACKAGE)
    root.set_attribute("name", "ecore")
    root.set_attribute("nsURI", ECORE_NS_URI)
    root.set_attribute("nsPrefix", "ecore")
    for name in DATATYPE_NAMES:
        datatype = ModelObject(type=EDATATYPE)
        datatype.set_attribute("name", name)
        root.add_reference_target("eClassifiers", datatype)
    return Resource(uri=ECORE_NS_URI, contents=[root])


_DATATYPES = _build_datatypes_resource()


def datatypes_resource() -> Resource:
    """The resource holding Ecore's built-in EDataType instances."""
    return _DATATYPES


# ---------------------------------------------------------------------------
# Bootstrap loading
# ---------------------------------------------------------------------------

def bootstrap_registry() -> TypeRegistry:
    """A registry holding only the Ecore package."""
    return TypeRegistry([ECORE])


_BOOTSTRAP = bootstrap_registry()


def bootstrap_resolver() -> TypeResolver:
    """Resolver over the shared, Ecore-only bootstrap registry."""
    return _BOOTSTRAP.resolve


def load_metamodel(
    source: Source, uri: str = "", options: LoadOptions | None = None
) -> Resource:
    """Load an ``.ecore`` document as instances of the Ecore package."""
    options = options or LoadOptions()
    options = replace(options, resources={ECORE_NS_URI: _DATATYPES, **options.resources})
    return load(source, bootstrap_resolver(), uri=uri, options=options)


# ---------------------------------------------------------------------------
# Ecore instances → descriptors
# ---------------------------------------------------------------------------

def _namespace_of(classifier: ModelObject) -> str:
    for container in classifier.containers():
        if container.is_instance(EPACKAGE):
            return container.get("nsURI") or ""
    return ""


def erased_classifier(typed_element: ModelObject) -> ModelObject | None:
    """The EClassifier typing ``typed_element``, with generics erased.

    A type parameter erases to the classifier of its first bound; an
    unbounded one yields None.
    """
    etype = typed_element.get("eType")
    if etype is not None:
        return etype
    generic = typed_element.get("eGenericType")
    if generic is None:
        return None
    etype = generic.get("eClassifier")
    parameter = generic.get("eTypeParameter")
    if etype is None and parameter is not None:
        bounds = parameter.get("eBounds")
        if bounds:
            etype = bounds[0].get("eClassifier")
    return etype


def _many(typed_element: ModelObject) -> bool:
    upper = typed_element.get("upperBound")
    return upper == UNBOUNDED or upper > 1


def _add_attribute(cls: ClassDescriptor, feature: ModelObject) -> None:
    name = feature.get("name")
    etype = erased_classifier(feature)
    if etype is None:
        raise ValueError(f"Attribute '{name}' of '{cls.name}' has no type")
    type_name = etype.get("name")
    literals: tuple[str, ...] = ()
    if etype.is_instance(EENUM):
        literals = tuple(lit.get("literal") or lit.get("name") for lit in etype.get("eLiterals"))

    default = intrinsic_default(type_name)
    literal = feature.get("defaultValueLiteral")
    if literal is not None:
        probe = AttributeDescriptor(name=name, value_type_name=type_name, literals=literals)
        default = coerce(probe, literal)
    elif literals:
        default = literals[0]

    cls.add_attribute(name, type_name, many=_many(feature), literals=literals, default=default)


def _add_reference(cls: ClassDescriptor, feature: ModelObject) -> None:
    name = feature.get("name")
    etype = erased_classifier(feature)
    if etype is None or not etype.is_instance(ECLASS):
        raise ValueError(f"Reference '{name}' of '{cls.name}' must be typed by an EClass")
    cls.add_reference(
        name,
        etype.get("name"),
        containment=feature.get("containment"),
        many=_many(feature),
        target_namespace=_namespace_of(etype),
    )


def packages_from_resource(resource: Resource) -> list[PackageDescriptor]:
    """Convert every EPackage of a loaded metamodel into a PackageDescriptor.

    Sub-packages become packages of their own. Supertypes may live in any
    package of the same resource.
    """
    packages: list[PackageDescriptor] = []
    classes: list[tuple[ModelObject, ClassDescriptor]] = []
    by_object: dict[int, ClassDescriptor] = {}

    for obj in resource.all_contents():
        if not obj.is_instance(EPACKAGE):
            continue
        package = PackageDescriptor(
            namespace_uri=obj.get("nsURI") or "",
            name=obj.get("name") or "",
            prefix=obj.get("nsPrefix") or "",
        )
        for classifier in obj.get("eClassifiers"):
            if classifier.is_instance(ECLASS):
                cls = package.add_class(
                    classifier.get("name"),
                    abstract=classifier.get("abstract") or classifier.get("interface"),
                )
                classes.append((classifier, cls))
                by_object[id(classifier)] = cls
        logger.info("%d classes found in %s", len(package.classes), package.namespace_uri)
        packages.append(package)

    for eclass, cls in classes:
        for supertype in eclass.get("eSuperTypes"):
            resolved = by_object.get(id(supertype))
            if resolved is None:
                raise UnknownClass(_namespace_of(supertype), supertype.get("name") or "")
            cls.add_supertype(resolved)

    for eclass, cls in classes:
        for feature in eclass.get("eStructuralFeatures"):
            if feature.is_instance(EREFERENCE):
                _add_reference(cls, feature)
            else:
                _add_attribute(cls, feature)

    return packages


def register_packages(registry: TypeRegistry, resource: Resource) -> list[PackageDescriptor]:
    """Convert the EPackages of ``resource`` and register each of them."""
    logger.info("Registering packages of %s", resource.uri or "<stream>")
    packages = packages_from_resource(resource)
    registry.register_all(packages)
    return packages
