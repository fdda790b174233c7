"""Namespace constants and load options."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .resource import Resource


# ---------------------------------------------------------------------------
# Well-known namespaces
# ---------------------------------------------------------------------------

XMI_NS = "http://www.omg.org/XMI"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
ECORE_NS_URI = "http://www.eclipse.org/emf/2002/Ecore"

# Unbounded multiplicity, as written in upperBound="-1"
UNBOUNDED = -1


# ---------------------------------------------------------------------------
# Load options
# ---------------------------------------------------------------------------

@dataclass
class LoadOptions:
    """Knobs for a single call to refload.loader.load."""

    # Already loaded documents, keyed by URI, for href links into them
    resources: dict[str, Resource] = field(default_factory=dict)

    # Link targets must be instances of the reference's target class
    check_link_types: bool = True

    # Index xmi:id values so links may use them instead of fragments
    use_xmi_ids: bool = True
