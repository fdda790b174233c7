"""Graph case study — loading the graph metamodel and a graph model.

The metamodel (graph_metamodel.ecore) declares:
- NamedElement (abstract): name
- Graph: contains nodes and edges
- Node: weight, kind (NodeKind enum), outgoing/incoming edges
- Edge: label, source and target nodes

The model (graph_model.graph) is a three-node chain A -> B -> C.
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

from refload import ecore
from refload.loader import load
from refload.registry import TypeRegistry
from refload.resource import Resource

HERE = os.path.dirname(os.path.abspath(__file__))
METAMODEL_PATH = os.path.join(HERE, "graph_metamodel.ecore")
MODEL_PATH = os.path.join(HERE, "graph_model.graph")

GRAPH_NS_URI = "http://www.example.org/graph"


def load_graph_metamodel() -> Resource:
    """Load graph_metamodel.ecore as a model of Ecore instances."""
    return ecore.load_metamodel(METAMODEL_PATH, uri="graph_metamodel.ecore")


def load_graph_model(registry: TypeRegistry) -> Resource:
    """Load graph_model.graph against the packages of ``registry``."""
    return load(MODEL_PATH, registry.resolve, uri="graph_model.graph")


def build_registry() -> TypeRegistry:
    """Load the metamodel and register its packages in a fresh registry."""
    registry = TypeRegistry()
    ecore.register_packages(registry, load_graph_metamodel())
    return registry
