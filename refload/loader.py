"""Resource Loader — XMI documents to typed object graphs.

The loader knows nothing about the classes it instantiates. Every element
is typed through a caller-supplied resolver ``(namespace_uri, class_name)
-> ClassDescriptor``: the bootstrap Ecore resolver when reading a
metamodel, ``TypeRegistry.resolve`` when reading a model.

The document is read in one streaming pass (lxml iterparse):

  - the root element (or each child of an ``xmi:XMI`` wrapper) is typed by
    its qualified tag, ``{nsURI}ClassName``;
  - a nested element is named after a containment feature of its parent
    and typed by ``xsi:type="prefix:Class"`` or, failing that, by the
    reference's target class;
  - XML attributes carry attribute literals, coerced immediately, and
    non-containment links, which are queued;
  - links are resolved once the whole document has been read, so forward
    references work.

A load either returns a complete Resource or raises; it never touches a
registry.
"""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass
from typing import IO, Callable, Union

from lxml import etree

from .config import XMI_NS, XSI_NS, LoadOptions
from .errors import MalformedStream, UnresolvedReference
from .literals import coerce
from .model_object import ModelObject
from .resource import Resource
from .types import AttributeDescriptor, ClassDescriptor, ReferenceDescriptor

logger = logging.getLogger(__name__)

TypeResolver = Callable[[str, str], ClassDescriptor]
Source = Union[str, bytes, os.PathLike, IO]

_XMI_ROOT = f"{{{XMI_NS}}}XMI"
_XSI_TYPE = f"{{{XSI_NS}}}type"


# ---------------------------------------------------------------------------
# Reader state
# ---------------------------------------------------------------------------

@dataclass
class _Link:
    """A non-containment link waiting for its target to exist."""
    source: ModelObject
    reference: ReferenceDescriptor
    identifier: str
    line: int | None = None


@dataclass
class _Frame:
    """What the currently open element stands for.

    kind is one of: document (xmi:XMI wrapper), object, value (an element
    holding one attribute literal), link (an href element), skip.
    """
    kind: str
    obj: ModelObject | None = None
    attribute: AttributeDescriptor | None = None


class _XmiReader:
    def __init__(self, resolver: TypeResolver, uri: str, options: LoadOptions) -> None:
        self.resolver = resolver
        self.options = options
        self.resource = Resource(uri=uri)
        self.backlog: list[_Link] = []
        self.object_count = 0
        self._stack: list[_Frame] = []
        self._classes: dict[tuple[str, str], ClassDescriptor] = {}
        self._pending: dict[tuple[int, str], int] = {}
        self._saw_root = False

    def read(self, source, encoding: str | None = None) -> Resource:
        try:
            for event, el in etree.iterparse(
                source,
                events=("start", "end"),
                encoding=encoding,
                remove_comments=True,
                remove_pis=True,
            ):
                if event == "start":
                    self._start(el)
                else:
                    self._end(el)
        except etree.XMLSyntaxError as exc:
            raise MalformedStream(f"Invalid XML: {exc.msg}", getattr(exc, "lineno", None)) from exc
        if not self._saw_root:
            raise MalformedStream("Document has no root element")
        self._resolve_backlog()
        return self.resource

    # -----------------------------------------------------------------------
    # Element events
    # -----------------------------------------------------------------------

    def _start(self, el) -> None:
        self._saw_root = True
        parent = self._stack[-1] if self._stack else None

        if parent is None and el.tag == _XMI_ROOT:
            self._stack.append(_Frame("document"))
            return

        if parent is None or parent.kind == "document":
            qname = etree.QName(el)
            if qname.namespace == XMI_NS:
                # xmi:Documentation, xmi:Extension
                self._stack.append(_Frame("skip"))
                return
            obj = self._create(self._root_class(el, qname), el)
            self.resource.contents.append(obj)
            self._stack.append(_Frame("object", obj=obj))
            return

        if parent.kind == "value":
            raise MalformedStream(
                f"Unexpected element <{etree.QName(el).localname}> inside the value "
                f"of attribute '{parent.attribute.name}'",
                el.sourceline,
            )
        if parent.kind != "object":
            self._stack.append(_Frame("skip"))
            return

        self._start_feature(parent.obj, el)

    def _start_feature(self, owner: ModelObject, el) -> None:
        qname = etree.QName(el)
        if qname.namespace == XMI_NS:
            self._stack.append(_Frame("skip"))
            return

        name = qname.localname
        feature = owner.type.feature(name)
        if feature is None:
            raise MalformedStream(
                f"Class '{owner.type.name}' has no feature '{name}'", el.sourceline
            )

        if isinstance(feature, AttributeDescriptor):
            self._stack.append(_Frame("value", obj=owner, attribute=feature))
            return

        href = el.get("href")
        if href is not None:
            if feature.containment:
                raise MalformedStream(
                    f"Containment reference '{name}' cannot point into another "
                    f"document ({href})",
                    el.sourceline,
                )
            self._defer(owner, feature, href, el.sourceline)
            self._stack.append(_Frame("link"))
            return

        if not feature.containment:
            raise MalformedStream(
                f"Reference '{name}' of '{owner.type.name}' is not a containment; "
                f"nested elements need an href",
                el.sourceline,
            )

        child = self._create(self._child_class(el, feature, owner), el)
        if not feature.many and owner.reference_values.get(name):
            raise MalformedStream(
                f"Single-valued reference '{name}' of '{owner.type.name}' "
                f"has more than one value",
                el.sourceline,
            )
        owner.add_reference_target(name, child)
        self._stack.append(_Frame("object", obj=child))

    def _end(self, el) -> None:
        frame = self._stack.pop()
        if frame.kind == "value":
            attr = frame.attribute
            value = coerce(attr, el.text or "")
            if attr.many:
                frame.obj.add_attribute_value(attr.name, value)
            elif attr.name in frame.obj.attribute_values:
                raise MalformedStream(
                    f"Attribute '{attr.name}' of '{frame.obj.type.name}' given twice",
                    el.sourceline,
                )
            else:
                frame.obj.set_attribute(attr.name, value)
        el.clear()

    # -----------------------------------------------------------------------
    # Typing
    # -----------------------------------------------------------------------

    def _root_class(self, el, qname: etree.QName) -> ClassDescriptor:
        xsi_type = el.get(_XSI_TYPE)
        if xsi_type is not None:
            return self._resolve_qualified(xsi_type, el)
        if qname.namespace is None:
            raise MalformedStream(
                f"Root element <{qname.localname}> has no namespace", el.sourceline
            )
        return self.resolver(qname.namespace, qname.localname)

    def _child_class(self, el, ref: ReferenceDescriptor, owner: ModelObject) -> ClassDescriptor:
        expected = self._target_class(ref, owner.type, el.sourceline)
        xsi_type = el.get(_XSI_TYPE)
        if xsi_type is None:
            return expected
        cls = self._resolve_qualified(xsi_type, el)
        if not expected.is_super_type_of(cls):
            raise MalformedStream(
                f"'{cls.name}' is not a '{expected.name}' as required by "
                f"reference '{ref.name}'",
                el.sourceline,
            )
        return cls

    def _target_class(
        self, ref: ReferenceDescriptor, owner_type: ClassDescriptor, line: int | None = None
    ) -> ClassDescriptor:
        namespace = ref.target_namespace or owner_type.namespace_uri
        if namespace is None:
            raise MalformedStream(
                f"Cannot tell which package declares '{ref.target_class_name}' "
                f"(reference '{ref.name}')",
                line,
            )
        key = (namespace, ref.target_class_name)
        if key not in self._classes:
            self._classes[key] = self.resolver(namespace, ref.target_class_name)
        return self._classes[key]

    def _resolve_qualified(self, value: str, el) -> ClassDescriptor:
        prefix, _, local = value.rpartition(":")
        namespace = el.nsmap.get(prefix or None)
        if namespace is None:
            raise MalformedStream(
                f"Undeclared namespace prefix '{prefix}' in type '{value}'", el.sourceline
            )
        return self.resolver(namespace, local)

    # -----------------------------------------------------------------------
    # Objects and values
    # -----------------------------------------------------------------------

    def _create(self, cls: ClassDescriptor, el) -> ModelObject:
        if cls.abstract:
            raise MalformedStream(f"Cannot instantiate abstract class '{cls.name}'", el.sourceline)
        obj = ModelObject(type=cls)
        self.object_count += 1
        for key, value in el.attrib.items():
            qname = etree.QName(key)
            if qname.namespace == XMI_NS:
                if qname.localname == "id":
                    self._index(obj, value, el.sourceline)
                continue
            if qname.namespace is not None:
                # xsi:type, xsi:schemaLocation and foreign annotations
                continue
            self._set_from_xml_attribute(obj, qname.localname, value, el.sourceline)
        return obj

    def _index(self, obj: ModelObject, xmi_id: str, line: int | None) -> None:
        obj.xmi_id = xmi_id
        if not self.options.use_xmi_ids:
            return
        if xmi_id in self.resource.ids:
            raise MalformedStream(f"Duplicate xmi:id '{xmi_id}'", line)
        self.resource.ids[xmi_id] = obj

    def _set_from_xml_attribute(
        self, obj: ModelObject, name: str, value: str, line: int | None
    ) -> None:
        feature = obj.type.feature(name)
        if feature is None:
            raise MalformedStream(f"Class '{obj.type.name}' has no feature '{name}'", line)
        if isinstance(feature, AttributeDescriptor):
            if feature.many:
                obj.set_attribute(name, [coerce(feature, token) for token in value.split()])
            else:
                obj.set_attribute(name, coerce(feature, value))
            return
        if feature.containment:
            raise MalformedStream(
                f"Containment reference '{name}' must be written as nested elements", line
            )
        for identifier in _split_links(value):
            self._defer(obj, feature, identifier, line)

    # -----------------------------------------------------------------------
    # Links
    # -----------------------------------------------------------------------

    def _defer(
        self, source: ModelObject, ref: ReferenceDescriptor, identifier: str, line: int | None
    ) -> None:
        key = (id(source), ref.name)
        if not ref.many and self._pending.get(key):
            raise MalformedStream(
                f"Single-valued reference '{ref.name}' of '{source.type.name}' "
                f"has more than one value",
                line,
            )
        self._pending[key] = self._pending.get(key, 0) + 1
        self.backlog.append(_Link(source, ref, identifier, line))

    def _resolve_backlog(self) -> None:
        for link in self.backlog:
            target = self._lookup(link.identifier)
            if target is None:
                raise UnresolvedReference(
                    f"{link.source.type.name}.{link.reference.name}", link.identifier
                )
            if self.options.check_link_types:
                expected = self._target_class(link.reference, link.source.type, link.line)
                if not target.is_instance(expected):
                    raise MalformedStream(
                        f"Reference '{link.reference.name}' expects '{expected.name}', "
                        f"'{link.identifier}' is a '{target.type.name}'",
                        link.line,
                    )
            link.source.add_reference_target(link.reference.name, target)
        logger.debug("Resolved %d deferred links", len(self.backlog))

    def _lookup(self, identifier: str) -> ModelObject | None:
        uri, sep, fragment = identifier.rpartition("#")
        if not sep:
            return self.resource.get_object(identifier)
        if not uri or uri == self.resource.uri:
            return self.resource.get_object(fragment)
        other = self.options.resources.get(uri)
        if other is None:
            return None
        return other.get_object(fragment)


def _split_links(value: str) -> list[str]:
    """Split a space separated link list.

    Cross-document links may carry a type qualifier first, as in
    ``ecore:EDataType http://www.eclipse.org/emf/2002/Ecore#//EString``;
    the qualifier is dropped.
    """
    tokens = value.split()
    links: list[str] = []
    for i, token in enumerate(tokens):
        is_qualifier = (
            ":" in token
            and "#" not in token
            and not token.startswith("/")
            and i + 1 < len(tokens)
            and "#" in tokens[i + 1]
        )
        if not is_qualifier:
            links.append(token)
    return links


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def _open(source: Source) -> tuple[object, str | None]:
    """Turn ``source`` into something lxml's iterparse accepts.

    Also returns the encoding that overrides the XML declaration: text
    streams are already decoded, so whatever encoding they declare no
    longer describes the bytes handed to lxml.
    """
    if isinstance(source, bytes):
        return io.BytesIO(source), None
    if isinstance(source, (str, os.PathLike)):
        return os.fspath(source), None
    if isinstance(source, io.TextIOBase):
        return io.BytesIO(source.read().encode("utf-8")), "utf-8"
    return source, None


def load(
    source: Source,
    resolver: TypeResolver,
    uri: str = "",
    options: LoadOptions | None = None,
) -> Resource:
    """Load an XMI document into a Resource.

    ``source`` is a file path, ``bytes``, or a binary or text file object.
    ``uri`` names the resource; it defaults to the path when loading from
    a file. Raises MalformedStream, UnknownPackage, UnknownClass,
    AttributeTypeMismatch or UnresolvedReference; nothing is returned
    unless the whole document loaded.
    """
    if not uri and isinstance(source, (str, os.PathLike)):
        uri = os.fspath(source)
    options = options or LoadOptions()
    logger.debug("Loading resource %s", uri or "<stream>")

    reader = _XmiReader(resolver, uri, options)
    resource = reader.read(*_open(source))

    logger.info(
        "Loaded %s: %d root(s), %d object(s)",
        uri or "<stream>",
        len(resource.contents),
        reader.object_count,
    )
    return resource
