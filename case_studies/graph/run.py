"""Graph case study — end-to-end reflective loading.

Steps:
  1. Load the graph metamodel as instances of the built-in Ecore package
  2. Report its classes, attributes and references
  3. Register its packages; loading the model before this step fails
  4. Load the graph model against the registry
  5. Report every object with its attribute and reference values

Run:  python case_studies/graph/run.py
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

import logging

from refload import ecore
from refload.describe import log_metamodel, log_model
from refload.errors import UnknownPackage
from refload.registry import TypeRegistry

from case_studies.graph.loading import load_graph_metamodel, load_graph_model

logger = logging.getLogger("graph")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s - %(message)s")

    logger.info("Loading Graph Metamodel")
    metamodel = load_graph_metamodel()
    logger.info("Done, see some information on the metamodel below")
    log_metamodel(metamodel)

    registry = TypeRegistry()
    try:
        load_graph_model(registry)
    except UnknownPackage as exc:
        logger.info("Before registration: %s", exc)

    ecore.register_packages(registry, metamodel)

    logger.info("Loading Graph Model")
    model = load_graph_model(registry)
    logger.info("Done, see some information on the model below")
    log_model(model)


if __name__ == "__main__":
    main()
