"""Resources — the roots produced by one load, and fragment addressing.

Objects inside a resource are addressed the way EMF addresses them:

  /                 first root
  /1                second root
  //@nodes.0        first object of the 'nodes' feature of the first root
  //@graph/@nodes.2 single-valued 'graph', then the third of its 'nodes'
  //Node            the contained object whose 'name' is "Node"

Fragments that do not start with '/' are looked up as xmi:id values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from .model_object import ModelObject
from .traversal import all_contents


@dataclass(eq=False)
class Resource:
    """The roots of one loaded document."""

    uri: str = ""
    contents: list[ModelObject] = field(default_factory=list)

    # xmi:id → object
    ids: dict[str, ModelObject] = field(default_factory=dict, repr=False)

    def all_contents(self) -> Iterator[ModelObject]:
        """Every root followed by its contents, depth-first, pre-order."""
        for root in list(self.contents):
            yield root
            yield from all_contents(root)

    def __len__(self) -> int:
        return sum(1 for _ in self.all_contents())

    def contains(self, obj: ModelObject) -> bool:
        """True if ``obj`` is one of the roots or lies beneath one."""
        return self._root_index(obj.root()) is not None

    # -----------------------------------------------------------------------
    # Fragments
    # -----------------------------------------------------------------------

    def uri_fragment(self, obj: ModelObject) -> str:
        """Return the fragment path of ``obj`` within this resource."""
        segments: list[str] = []
        current = obj
        while current.container is not None:
            ref = current.containing_reference
            siblings = current.container.reference_values[ref.name]
            if ref.many:
                index = next(i for i, s in enumerate(siblings) if s is current)
                segments.append(f"@{ref.name}.{index}")
            else:
                segments.append(f"@{ref.name}")
            current = current.container

        root_index = self._root_index(current)
        if root_index is None:
            raise ValueError(f"{obj!r} does not belong to resource '{self.uri}'")
        prefix = "/" + (str(root_index) if root_index else "")
        if not segments:
            return prefix
        return prefix + "/" + "/".join(reversed(segments))

    def _root_index(self, root: ModelObject) -> int | None:
        for i, candidate in enumerate(self.contents):
            if candidate is root:
                return i
        return None

    def get_object(self, fragment: str) -> ModelObject | None:
        """Resolve a fragment path or xmi:id; None when nothing matches."""
        fragment = fragment.lstrip("#")
        if not fragment.startswith("/"):
            return self.ids.get(fragment)

        parts = fragment[1:].split("/")
        root_part, segments = parts[0], [p for p in parts[1:] if p]
        try:
            root_index = int(root_part) if root_part else 0
        except ValueError:
            return None
        if root_index >= len(self.contents):
            return None

        current = self.contents[root_index]
        for segment in segments:
            current = _step(current, segment)
            if current is None:
                return None
        return current

    def __repr__(self) -> str:
        return f"Resource({self.uri or '<memory>'}: {len(self.contents)} roots)"


def _step(obj: ModelObject, segment: str) -> ModelObject | None:
    """Follow one fragment segment down the containment tree."""
    if segment.startswith("@"):
        name, _, index = segment[1:].partition(".")
        ref = obj.type.get_reference(name)
        if ref is None:
            return None
        targets = obj.reference_values.get(name, [])
        try:
            i = int(index) if index else 0
        except ValueError:
            return None
        return targets[i] if 0 <= i < len(targets) else None

    for child in obj.contents():
        if child.name == segment:
            return child
    return None
