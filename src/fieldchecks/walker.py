"""Value graph traversal.

``walk`` linearizes a value graph into a pre-order list of ``Node`` objects:
a container node is followed by the nodes of its children before the next
sibling. Record fields are visited in declaration order, sequence elements by
index and mapping values in the mapping's iteration order.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any

from .errors import CyclicGraph
from .shapes import (
    FieldInfo,
    Shape,
    child_labels,
    children,
    record_fields,
    shape_of,
    type_name,
)

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Node:
    """One visited position of the value graph."""
    value: Any
    field: FieldInfo | None = None
    parent: "Node | None" = dataclasses.field(default=None, repr=False)
    optional: bool = False
    path: str = ""

    @property
    def name(self) -> str:
        """Field name, or the type name for non-field nodes."""
        if self.field is not None:
            return self.field.name
        return type_name(self.value)

    @property
    def directive(self) -> str | None:
        if self.field is None:
            return None
        return self.field.directive

    @property
    def shape(self) -> Shape:
        return shape_of(self.value)


class _Walker:
    """Collects nodes and the identities of containers being descended."""

    def __init__(self) -> None:
        self.nodes: list[Node] = []
        self._active: set[int] = set()

    def visit(self, value: Any, info: FieldInfo | None, parent: Node | None, path: str) -> None:
        node = Node(
            value=value,
            field=info,
            parent=parent,
            optional=info.optional if info is not None else False,
            path=path,
        )
        self.nodes.append(node)

        shape = node.shape
        if shape not in (Shape.RECORD, Shape.SEQUENCE, Shape.MAP):
            return

        key = id(value)
        if key in self._active:
            raise CyclicGraph(node.name, path=path)
        self._active.add(key)
        try:
            if shape == Shape.RECORD:
                for child_info, child in record_fields(value):
                    self.visit(child, child_info, node, f"{path}.{child_info.name}")
            else:
                # Elements belong to the nearest enclosing record
                for label, child in zip(child_labels(value), children(value)):
                    self.visit(child, None, parent, f"{path}{label}")
        finally:
            self._active.discard(key)


def walk(root: Any) -> list[Node]:
    """Return the pre-order node sequence reachable from ``root``.

    Args:
        root: Any value; ``None`` yields an empty sequence

    Returns:
        Fresh list of nodes, root first

    Raises:
        CyclicGraph: If a container is reachable from inside itself
    """
    if root is None:
        return []

    walker = _Walker()
    walker.visit(root, None, None, type_name(root))
    logger.debug(f"Walked {len(walker.nodes)} nodes from {type_name(root)}")
    return walker.nodes
