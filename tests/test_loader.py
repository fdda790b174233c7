"""Tests for the XMI Resource Loader."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import io

import pytest
from refload.config import LoadOptions
from refload.errors import (
    AttributeTypeMismatch,
    MalformedStream,
    UnknownClass,
    UnknownPackage,
    UnresolvedReference,
)
from refload.loader import load
from refload.package import PackageDescriptor
from refload.registry import TypeRegistry
from refload.traversal import all_attributes, all_contents, all_references, get


LIB = "http://example.org/library"

HEADER = (
    'xmlns:xmi="http://www.omg.org/XMI" '
    'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    f'xmlns:lib="{LIB}"'
)

LIBRARY_XMI = f"""<?xml version="1.0" encoding="UTF-8"?>
<lib:Library xmi:version="2.0" {HEADER} name="City" featured="//@items.1">
  <items xsi:type="lib:Book" title="Dune" pages="412" price="9.5" available="true"
      genre="FICTION" authors="//@writers.0">
    <tags>classic</tags>
    <tags>desert</tags>
  </items>
  <items xsi:type="lib:Magazine" title="Nature" issue="7" authors="//@writers.0 //@writers.1"/>
  <writers name="Herbert" works="//@items.0 //@items.1"/>
  <writers name="Curie" works="//@items.1"/>
</lib:Library>
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _library_package() -> PackageDescriptor:
    pkg = PackageDescriptor(namespace_uri=LIB, name="library", prefix="lib")
    library = pkg.add_class("Library")
    publication = pkg.add_class("Publication", abstract=True)
    book = pkg.add_class("Book")
    magazine = pkg.add_class("Magazine")
    writer = pkg.add_class("Writer")
    book.add_supertype(publication)
    magazine.add_supertype(publication)

    library.add_attribute("name", "EString")
    library.add_reference("items", "Publication", containment=True, many=True)
    library.add_reference("writers", "Writer", containment=True, many=True)
    library.add_reference("featured", "Publication")

    publication.add_attribute("title", "EString")
    publication.add_reference("authors", "Writer", many=True)

    book.add_attribute("pages", "EInt", default=0)
    book.add_attribute("price", "EDouble")
    book.add_attribute("available", "EBoolean", default=False)
    book.add_attribute("genre", "Genre", literals=("FICTION", "SCIENCE"), default="FICTION")
    book.add_attribute("tags", "EString", many=True)

    magazine.add_attribute("issue", "EInt", default=0)

    writer.add_attribute("name", "EString")
    writer.add_reference("works", "Publication", many=True)
    return pkg


@pytest.fixture
def registry():
    return TypeRegistry([_library_package()])


def _load(xml: str, registry, **kwargs):
    return load(xml.strip().encode("utf-8"), registry.resolve, **kwargs)


def _doc(body: str, **root_attrs) -> str:
    attrs = " ".join(f'{k}="{v}"' for k, v in root_attrs.items())
    return f'<lib:Library {HEADER} {attrs}>{body}</lib:Library>'


# ---------------------------------------------------------------------------
# Successful loads
# ---------------------------------------------------------------------------

class TestLoadLibrary:
    def test_root_type_from_qualified_tag(self, registry):
        resource = _load(LIBRARY_XMI, registry)
        assert len(resource.contents) == 1
        root = resource.contents[0]
        assert root.type is registry.resolve(LIB, "Library")
        assert root.get("name") == "City"

    def test_contents_in_declaration_order(self, registry):
        root = _load(LIBRARY_XMI, registry).contents[0]
        contents = list(all_contents(root))
        assert [o.type.name for o in contents] == ["Book", "Magazine", "Writer", "Writer"]

    def test_xsi_type_selects_subclass(self, registry):
        root = _load(LIBRARY_XMI, registry).contents[0]
        book, magazine = root.get("items")
        assert book.type.name == "Book"
        assert magazine.type.name == "Magazine"
        assert book.container is root

    def test_attribute_literals_are_coerced(self, registry):
        root = _load(LIBRARY_XMI, registry).contents[0]
        book, magazine = root.get("items")
        assert book.get("pages") == 412
        assert book.get("price") == 9.5
        assert book.get("available") is True
        assert book.get("genre") == "FICTION"
        assert book.get("tags") == ("classic", "desert")
        assert magazine.get("issue") == 7

    def test_forward_references_resolved(self, registry):
        root = _load(LIBRARY_XMI, registry).contents[0]
        book, magazine = root.get("items")
        herbert, curie = root.get("writers")
        assert root.get("featured") is magazine
        assert book.get("authors") == (herbert,)
        assert magazine.get("authors") == (herbert, curie)
        assert herbert.get("works") == (book, magazine)

    def test_links_do_not_contain(self, registry):
        root = _load(LIBRARY_XMI, registry).contents[0]
        magazine = root.get("featured")
        assert magazine.container is root
        assert magazine.containing_reference.name == "items"

    def test_inherited_features_listed_after_own(self, registry):
        book = _load(LIBRARY_XMI, registry).contents[0].get("items")[0]
        assert [a.name for a in all_attributes(book)] == [
            "pages", "price", "available", "genre", "tags", "title",
        ]
        assert [r.name for r in all_references(book)] == ["authors"]

    def test_unset_attributes_use_defaults(self, registry):
        xml = _doc('<items xsi:type="lib:Book" title="Blank"/>')
        book = _load(xml, registry).contents[0].get("items")[0]
        assert book.get("pages") == 0
        assert book.get("available") is False
        assert book.get("genre") == "FICTION"
        assert book.get("tags") == ()

    def test_many_valued_attribute_in_xml_attribute(self, registry):
        xml = _doc('<items xsi:type="lib:Book" tags="a b c"/>')
        book = _load(xml, registry).contents[0].get("items")[0]
        assert book.get("tags") == ("a", "b", "c")

    def test_xmi_ids_as_link_targets(self, registry):
        xml = _doc('<items xsi:type="lib:Book" xmi:id="b1" title="Dune"/>', featured="b1")
        resource = _load(xml, registry)
        root = resource.contents[0]
        assert root.get("featured").get("title") == "Dune"
        assert resource.ids["b1"] is root.get("featured")
        assert root.get("featured").xmi_id == "b1"

    def test_xmi_wrapper_with_several_roots(self, registry):
        xml = f"""
        <xmi:XMI xmi:version="2.0" {HEADER}>
          <lib:Writer name="Herbert" works="/1"/>
          <lib:Book title="Dune" authors="/"/>
        </xmi:XMI>
        """
        resource = _load(xml, registry)
        writer, book = resource.contents
        assert writer.get("works") == (book,)
        assert book.get("authors") == (writer,)
        assert writer.container is None and book.container is None

    def test_text_stream_source(self, registry):
        resource = load(io.StringIO(LIBRARY_XMI), registry.resolve)
        assert resource.contents[0].get("name") == "City"

    def test_text_stream_ignores_declared_encoding(self, registry):
        xml = (
            '<?xml version="1.0" encoding="ISO-8859-1"?>\n'
            f'<lib:Library {HEADER} name="Café"/>'
        )
        resource = load(io.StringIO(xml), registry.resolve)
        assert resource.contents[0].get("name") == "Café"

    def test_declared_encoding_applies_to_bytes(self, registry):
        xml = (
            '<?xml version="1.0" encoding="ISO-8859-1"?>\n'
            f'<lib:Library {HEADER} name="Café"/>'
        )
        resource = load(xml.encode("iso-8859-1"), registry.resolve)
        assert resource.contents[0].get("name") == "Café"

    def test_binary_stream_source(self, registry):
        resource = load(io.BytesIO(LIBRARY_XMI.encode("utf-8")), registry.resolve, uri="lib.xmi")
        assert resource.uri == "lib.xmi"

    def test_path_source(self, registry, tmp_path):
        path = tmp_path / "library.xmi"
        path.write_text(LIBRARY_XMI, encoding="utf-8")
        resource = load(str(path), registry.resolve)
        assert resource.uri == str(path)
        assert len(resource) == 5

    def test_href_into_other_resource(self, registry):
        writers = _load(f'<lib:Writer {HEADER} name="Herbert"/>', registry, uri="writers.xmi")
        xml = _doc('<items xsi:type="lib:Book" title="Dune">'
                   '<authors href="writers.xmi#/"/></items>')
        options = LoadOptions(resources={"writers.xmi": writers})
        book = _load(xml, registry, options=options).contents[0].get("items")[0]
        assert book.get("authors") == (writers.contents[0],)

    def test_href_without_known_resource_unresolved(self, registry):
        xml = _doc('<items xsi:type="lib:Book"><authors href="writers.xmi#/"/></items>')
        with pytest.raises(UnresolvedReference) as info:
            _load(xml, registry)
        assert info.value.identifier == "writers.xmi#/"

    def test_xmi_extensions_ignored(self, registry):
        xml = _doc('<xmi:Extension extender="tool"><anything/></xmi:Extension>', name="L")
        assert _load(xml, registry).contents[0].get("name") == "L"


# ---------------------------------------------------------------------------
# Fragments
# ---------------------------------------------------------------------------

class TestFragments:
    def test_fragments_round_trip(self, registry):
        resource = _load(LIBRARY_XMI, registry)
        for obj in resource.all_contents():
            assert resource.get_object(resource.uri_fragment(obj)) is obj

    def test_fragment_forms(self, registry):
        resource = _load(LIBRARY_XMI, registry)
        root = resource.contents[0]
        assert resource.uri_fragment(root) == "/"
        assert resource.uri_fragment(root.get("writers")[1]) == "//@writers.1"
        assert resource.get_object("#//@items.0") is root.get("items")[0]
        assert resource.get_object("//@items.5") is None
        assert resource.get_object("//@nothing.0") is None

    def test_named_segments(self, registry):
        resource = _load(LIBRARY_XMI, registry)
        assert resource.get_object("//Herbert") is resource.contents[0].get("writers")[0]
        assert resource.get_object("//Nobody") is None


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestLoadErrors:
    def test_unregistered_namespace_then_registered(self):
        registry = TypeRegistry()
        with pytest.raises(UnknownPackage) as info:
            _load(LIBRARY_XMI, registry)
        assert info.value.namespace_uri == LIB
        registry.register(_library_package())
        assert _load(LIBRARY_XMI, registry).contents[0].get("name") == "City"

    def test_unknown_root_class(self, registry):
        with pytest.raises(UnknownClass) as info:
            _load(f'<lib:Shelf {HEADER}/>', registry)
        assert info.value.class_name == "Shelf"

    def test_unknown_xsi_type(self, registry):
        with pytest.raises(UnknownClass):
            _load(_doc('<items xsi:type="lib:Pamphlet"/>'), registry)

    def test_attribute_type_mismatch(self, registry):
        before = _load(LIBRARY_XMI, registry)
        namespaces = registry.namespaces()
        xml = _doc('<items xsi:type="lib:Book" pages="abc"/>')
        with pytest.raises(AttributeTypeMismatch) as info:
            _load(xml, registry)
        assert info.value.attribute == "pages"
        assert info.value.literal == "abc"
        assert "EInt" in info.value.expected
        # Registry and earlier graphs are untouched
        assert registry.namespaces() == namespaces
        assert len(before) == 5
        assert before.contents[0].get("items")[0].get("pages") == 412

    @pytest.mark.parametrize("literal", ["yes", "2"])
    def test_boolean_mismatch(self, registry, literal):
        with pytest.raises(AttributeTypeMismatch):
            _load(_doc(f'<items xsi:type="lib:Book" available="{literal}"/>'), registry)

    def test_enum_literal_mismatch(self, registry):
        with pytest.raises(AttributeTypeMismatch, match="FICTION"):
            _load(_doc('<items xsi:type="lib:Book" genre="POETRY"/>'), registry)

    def test_unresolved_reference(self, registry):
        with pytest.raises(UnresolvedReference) as info:
            _load(_doc("", featured="//@items.9"), registry)
        assert info.value.identifier == "//@items.9"
        assert info.value.reference == "Library.featured"

    def test_unknown_xmi_id(self, registry):
        with pytest.raises(UnresolvedReference):
            _load(_doc("", featured="missing"), registry)

    def test_invalid_xml(self, registry):
        with pytest.raises(MalformedStream, match="Invalid XML"):
            _load(f'<lib:Library {HEADER} name="x">', registry)

    def test_empty_stream(self, registry):
        with pytest.raises(MalformedStream):
            load(b"", registry.resolve)

    def test_unknown_feature_attribute(self, registry):
        with pytest.raises(MalformedStream, match="no feature 'colour'"):
            _load(_doc("", colour="red"), registry)

    def test_unknown_feature_element(self, registry):
        with pytest.raises(MalformedStream, match="no feature 'shelves'"):
            _load(_doc("<shelves/>"), registry)

    def test_undeclared_prefix(self, registry):
        with pytest.raises(MalformedStream, match="Undeclared namespace prefix 'zz'"):
            _load(_doc('<items xsi:type="zz:Book"/>'), registry)

    def test_abstract_class_not_instantiated(self, registry):
        with pytest.raises(MalformedStream, match="abstract"):
            _load(_doc('<items title="untyped"/>'), registry)

    def test_xsi_type_must_conform(self, registry):
        with pytest.raises(MalformedStream, match="not a 'Publication'"):
            _load(_doc('<items xsi:type="lib:Writer"/>'), registry)

    def test_single_valued_reference_with_two_links(self, registry):
        xml = _doc('<items xsi:type="lib:Book"/><items xsi:type="lib:Book"/>',
                   featured="//@items.0 //@items.1")
        with pytest.raises(MalformedStream, match="Single-valued"):
            _load(xml, registry)

    def test_link_type_checked(self, registry):
        xml = _doc('<writers name="W"/>', featured="//@writers.0")
        with pytest.raises(MalformedStream, match="expects 'Publication'"):
            _load(xml, registry)

    def test_link_type_check_can_be_disabled(self, registry):
        xml = _doc('<writers name="W"/>', featured="//@writers.0")
        resource = _load(xml, registry, options=LoadOptions(check_link_types=False))
        assert resource.contents[0].get("featured").get("name") == "W"

    def test_nested_element_requires_containment(self, registry):
        with pytest.raises(MalformedStream, match="not a containment"):
            _load(_doc('<featured title="x"/>'), registry)

    def test_containment_as_xml_attribute_rejected(self, registry):
        with pytest.raises(MalformedStream, match="nested elements"):
            _load(_doc("", items="//@writers.0"), registry)

    def test_duplicate_xmi_id(self, registry):
        xml = _doc('<writers xmi:id="w"/><writers xmi:id="w"/>')
        with pytest.raises(MalformedStream, match="Duplicate xmi:id"):
            _load(xml, registry)

    def test_element_inside_attribute_value(self, registry):
        with pytest.raises(MalformedStream, match="Unexpected element"):
            _load(_doc('<items xsi:type="lib:Book"><tags><b/></tags></items>'), registry)


# ---------------------------------------------------------------------------
# Node / Edge scenario
# ---------------------------------------------------------------------------

def _g1_package() -> PackageDescriptor:
    pkg = PackageDescriptor(namespace_uri="g1", name="g1")
    node = pkg.add_class("Node")
    edge = pkg.add_class("Edge")
    node.add_attribute("name", "EString")
    edge.add_reference("source", "Node")
    edge.add_reference("target", "Node")
    return pkg


G1_MODEL = """
<xmi:XMI xmi:version="2.0" xmlns:xmi="http://www.omg.org/XMI" xmlns:g1="g1">
  <g1:Node name="A"/>
  <g1:Node name="B"/>
  <g1:Edge source="/" target="/1"/>
</xmi:XMI>
"""


class TestNodeEdgeScenario:
    def test_edge_features(self):
        registry = TypeRegistry([_g1_package()])
        resource = load(G1_MODEL.strip().encode(), registry.resolve)
        a, b, edge = resource.contents
        assert [f.name for f in all_references(edge)] == ["source", "target"]
        assert all_attributes(edge) == []
        source = all_references(edge)[0]
        assert get(edge, source) is a
        assert get(edge, "target") is b
        assert a.get("name") == "A" and b.get("name") == "B"
