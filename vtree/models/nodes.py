"""
Tree node entities.

- TreeVisibility: Per-node filter verdict
- TreeElement: Nested input description used to build or replace subtrees
- TreeNode: Live node owned by a TreeModel

A Location is a plain list of sibling indices from the root down to a node
(or to an insertion point). It is never stored on the node; ask the model
for it with ``TreeModel.get_node_location``.
"""
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict

Location = List[int]


class TreeVisibility(IntEnum):
    """Filter verdict for a single element."""
    HIDDEN = 0   # Hide the node and its subtree
    RECURSE = 1  # Show the node only if a descendant is visible
    VISIBLE = 2  # Show the node, children decide for themselves
    TREE = 3     # Show the node and every descendant


class TreeElement(BaseModel):
    """
    Nested description of a subtree.

    Attributes:
        element: Opaque payload, kept by reference.
        children: Child descriptions, in order.
        collapsed: Unset means the model's ``collapse_by_default``.
        collapsible: Unset means True when ``children`` is non-empty or
            ``collapsed`` was given explicitly.
        height: Optional row height hint for the renderer.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    element: Any
    children: Optional[List["TreeElement"]] = None
    collapsed: Optional[bool] = None
    collapsible: Optional[bool] = None
    height: Optional[float] = None


@dataclass(eq=False)
class TreeNode:
    """
    A node in the tree model.

    Nodes compare by identity. ``parent`` is a back-reference only; a node is
    owned by its parent's ``children`` list.
    """
    element: Any
    parent: Optional["TreeNode"] = field(default=None, repr=False)
    children: List["TreeNode"] = field(default_factory=list, repr=False)
    depth: int = 0
    collapsible: bool = False
    collapsed: bool = False
    visible: bool = True
    visible_children_count: int = 0
    visible_child_index: int = -1
    render_node_count: int = 0
    height: Optional[float] = None

    @classmethod
    def create_root(cls, element: Any = None) -> "TreeNode":
        """Synthetic root: always visible, never collapsible, depth 0."""
        return cls(element=element)

    @property
    def is_root(self) -> bool:
        return self.parent is None
