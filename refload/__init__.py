"""refload — reflective loading of metamodels and models.

refload reads a metamodel (classes, typed attributes, typed references) as
data, registers its packages by namespace URI, then reads models typed by
that metamodel without any Python class generated for the modeled types.
This package implements the core abstractions:

- Type descriptors (refload.types, refload.package): classes and packages as data
- Type Registry (refload.registry): namespace URI → package, resolution of classes
- Ecore bootstrap (refload.ecore): the built-in metamodel of metamodels
- Resource Loader (refload.loader): XMI documents → typed object graphs
- Reflective traversal (refload.traversal): containment walks and feature access

A metamodel is loaded as a model of the built-in Ecore package:

  resource = ecore.load_metamodel("graph.ecore")
  ecore.register_packages(registry, resource)
  model = loader.load("graph.xmi", registry.resolve)

Introspection reports (refload.describe) and an RDF export
(refload.rdf_bridge, requires rdflib) are built on top of the traversal.
"""
