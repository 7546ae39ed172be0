"""
TreeModel - Node graph with an incrementally maintained render list.

The model owns the node graph and knows, for every node, how many rows it
occupies in the flat render list (``render_node_count``). That count is what
lets a structural path be translated into a list index without walking the
whole tree, and what lets a collapse toggle replace exactly one contiguous
block of the list.

Usage:
    rows = SelectionList()
    model = TreeModel(rows)

    model.splice([0], 0, [TreeElement(element="A")])
    rows.splice(0, len(rows), model.as_list())

    node = model.root.children[0]
    model.set_collapsed(node, True)   # updates ``rows`` in place
"""
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple, Union

from loguru import logger

from vtree.core.config import TreeOptions
from vtree.core.events import Signal
from .nodes import Location, TreeElement, TreeNode, TreeVisibility
from .selection_list import SelectionList

NodeCallback = Callable[[TreeNode], None]
FilterFunction = Callable[[Any], TreeVisibility]


class TreeError(Exception):
    """Base class for tree model errors."""
    pass


class InvalidLocationError(TreeError, IndexError):
    """Raised when a location is empty or an index is out of range."""
    pass


class NodeNotFoundError(TreeError, LookupError):
    """Raised when a node is not attached to the tree."""
    pass


class ParentLookup(NamedTuple):
    """
    Result of translating a location into its parent and list position.

    Attributes:
        parent_node: Node addressed by all but the last index.
        list_index: Absolute render list position of the addressed slot.
        visible: Every ancestor down to ``parent_node`` is visible.
        revealed: Children of ``parent_node`` currently appear in the
            render list (all ancestors visible and expanded).
    """
    parent_node: TreeNode
    list_index: int
    visible: bool
    revealed: bool


class NodeLookup(NamedTuple):
    node: TreeNode
    list_index: int
    visible: bool
    revealed: bool


class TreeModel:
    """
    Tree of TreeNode objects flattened into a render list.

    Signals:
        on_filter_changed(): Fired when ``filter`` is assigned. The model does
            not re-flatten by itself; owners call ``as_list`` afterwards.
    """

    def __init__(
        self,
        render_list: SelectionList,
        root_element: Any = None,
        options: Optional[TreeOptions] = None,
    ):
        """
        Args:
            render_list: List host updated in place by ``set_collapsed``.
            root_element: Payload of the synthetic root node.
            options: Node defaults, see TreeOptions.
        """
        self._list = render_list
        self._root = TreeNode.create_root(root_element)
        self._filter: Optional[FilterFunction] = None
        self.options = options or TreeOptions()
        self.on_filter_changed = Signal("TreeModel.on_filter_changed")

    @property
    def root(self) -> TreeNode:
        return self._root

    @property
    def filter(self) -> Optional[FilterFunction]:
        return self._filter

    @filter.setter
    def filter(self, value: Union[FilterFunction, Any, None]) -> None:
        had_filter = self._filter is not None
        if value is not None and not callable(value):
            value = value.evaluate
        self._filter = value
        if value is None and had_filter:
            # Nodes hidden by the old filter become visible again
            self._reset_visibility(self._root)
        self.on_filter_changed.emit()

    def dispose(self) -> None:
        self.on_filter_changed.clear()

    # =========================================================================
    # Structural Splice
    # =========================================================================

    def splice(
        self,
        location: Location,
        delete_count: int,
        to_insert: Sequence[Union[TreeElement, dict]],
        on_create: Optional[NodeCallback] = None,
        on_delete: Optional[NodeCallback] = None,
    ) -> List[TreeNode]:
        """
        Replace children of the node addressed by ``location[:-1]``.

        Args:
            location: Parent path plus the insertion index as last entry.
            delete_count: Number of existing children to remove at the index.
            to_insert: Subtrees to insert at the index.
            on_create: Called for every created node, pre-order.
            on_delete: Called for every deleted node, pre-order.

        Returns:
            The removed top-level nodes.

        Raises:
            InvalidLocationError: Empty location, negative delete count or an
                index out of range. The tree is left untouched.
        """
        if not location:
            raise InvalidLocationError("Invalid tree location: empty location")
        if delete_count < 0:
            raise InvalidLocationError(f"Invalid delete count: {delete_count}")

        elements = [TreeElement.model_validate(el) for el in to_insert]
        parent = self.get_parent_node_with_list_index(location).parent_node
        index = location[-1]

        new_nodes = [
            self._create_tree_node(el, parent, parent.visible, on_create)
            for el in elements
        ]

        # Seed numbering from the nearest visible sibling before the slot
        visible_child_start = 0
        for sibling in reversed(parent.children[:index]):
            if sibling.visible:
                visible_child_start = sibling.visible_child_index + 1
                break

        inserted_visible = 0
        inserted_render_count = 0
        for node in new_nodes:
            inserted_render_count += node.render_node_count
            if node.visible:
                node.visible_child_index = visible_child_start + inserted_visible
                inserted_visible += 1

        end = index + delete_count
        deleted_nodes = parent.children[index:end]
        parent.children[index:end] = new_nodes

        deleted_visible = 0
        deleted_render_count = 0
        for node in deleted_nodes:
            if node.visible:
                deleted_visible += 1
                deleted_render_count += node.render_node_count

        shift = inserted_visible - deleted_visible
        if shift:
            for sibling in parent.children[index + len(new_nodes):]:
                if sibling.visible:
                    sibling.visible_child_index += shift
        parent.visible_children_count += shift

        if on_delete:
            for node in deleted_nodes:
                self._visit(node, on_delete)

        self._update_ancestors_render_node_count(
            parent, inserted_render_count - deleted_render_count
        )

        logger.debug(
            f"Spliced {location}: -{len(deleted_nodes)} +{len(new_nodes)} "
            f"(render delta {inserted_render_count - deleted_render_count})"
        )
        return deleted_nodes

    def _create_tree_node(
        self,
        tree_element: TreeElement,
        parent: TreeNode,
        visible: bool,
        on_create: Optional[NodeCallback],
    ) -> TreeNode:
        # Explicit stacks throughout: depth is bounded by memory, not the
        # interpreter's recursion limit.
        created: List[TreeNode] = []
        stack: List[Tuple[TreeElement, TreeNode]] = [(tree_element, parent)]

        while stack:
            element, owner = stack.pop()
            collapsed = element.collapsed
            collapsible = element.collapsible
            if collapsible is None:
                collapsible = collapsed is not None

            node = TreeNode(
                element=element.element,
                parent=owner,
                depth=owner.depth + 1,
                collapsible=collapsible or bool(element.children),
                collapsed=self.options.collapse_by_default if collapsed is None else collapsed,
                visible=visible,
                height=element.height,
            )
            if on_create:
                on_create(node)
            if created:
                owner.children.append(node)
            created.append(node)
            stack.extend((child, node) for child in reversed(element.children or ()))

        # Reverse pre-order finishes every child before its parent
        for node in reversed(created):
            child_render_count = 0
            for child in node.children:
                child_render_count += child.render_node_count
                if child.visible:
                    child.visible_child_index = node.visible_children_count
                    node.visible_children_count += 1

            if not node.visible:
                node.render_node_count = 0
            elif node.collapsed:
                node.render_node_count = 1
            else:
                node.render_node_count = 1 + child_render_count

        return created[0]

    def _visit(self, node: TreeNode, callback: NodeCallback) -> None:
        """Pre-order walk of ``node``'s subtree."""
        stack = [node]
        while stack:
            current = stack.pop()
            callback(current)
            stack.extend(reversed(current.children))

    def _update_ancestors_render_node_count(self, node: Optional[TreeNode], diff: int) -> None:
        # Hidden and collapsed ancestors do not count their children
        while diff and node is not None and node.visible and not node.collapsed:
            node.render_node_count += diff
            node = node.parent

    # =========================================================================
    # Collapse State
    # =========================================================================

    def set_collapsed(self, node: TreeNode, collapsed: bool) -> bool:
        """
        Collapse or expand a node and patch the render list.

        With ``auto_expand_single_children``, expanding also walks down
        through every node whose only visible child is collapsed.

        Returns:
            True if the collapse state changed.
        """
        if not self._apply_collapsed(node, collapsed):
            return False

        if not collapsed and self.options.auto_expand_single_children:
            current = node
            while True:
                visible_children = [child for child in current.children if child.visible]
                if len(visible_children) != 1:
                    break
                current = visible_children[0]
                if not self._apply_collapsed(current, False):
                    break

        return True

    def _apply_collapsed(self, node: TreeNode, collapsed: bool) -> bool:
        if node is self._root or not node.collapsible or node.collapsed == collapsed:
            return False

        lookup = self.get_tree_node_with_list_index(self.get_node_location(node))
        node.collapsed = collapsed

        if node.visible:
            previous_render_count = node.render_node_count
            block: List[TreeNode] = []
            self._collect_render_nodes(node, block)
            self._update_ancestors_render_node_count(
                node.parent, node.render_node_count - previous_render_count
            )
            if lookup.revealed:
                self._list.splice(lookup.list_index + 1, previous_render_count - 1, block[1:])

        logger.debug(f"{'Collapsed' if collapsed else 'Expanded'} node at depth {node.depth}")
        return True

    def _collect_render_nodes(self, node: TreeNode, result: List[TreeNode]) -> int:
        if not node.visible:
            return 0

        start = len(result)
        stack = [node]
        while stack:
            current = stack.pop()
            if not current.visible:
                continue
            result.append(current)
            current.render_node_count = 1
            if not current.collapsed:
                stack.extend(reversed(current.children))

        # Fold counts upward, deepest rows first
        for current in reversed(result[start + 1:]):
            current.parent.render_node_count += current.render_node_count

        return node.render_node_count

    # =========================================================================
    # Filtering / Flattening
    # =========================================================================

    def as_list(self) -> List[TreeNode]:
        """Re-evaluate visibility for the whole tree and return the render list."""
        result: List[TreeNode] = []
        self._to_list(result)
        logger.debug(f"Flattened tree into {len(result)} rows")
        return result

    def _filter_node(self, node: TreeNode, parent_visibility: TreeVisibility) -> TreeVisibility:
        if parent_visibility == TreeVisibility.TREE:
            return TreeVisibility.TREE

        if self._filter is not None:
            return TreeVisibility(self._filter(node.element))

        return TreeVisibility.VISIBLE if node.visible else TreeVisibility.HIDDEN

    def _to_list(self, result: List[TreeNode]) -> None:
        # Frames are (node, visibility, revealed, children_done). On entry
        # ``visibility`` is the parent's verdict; on exit it is the node's own.
        stack: List[Tuple[TreeNode, TreeVisibility, bool, bool]] = [
            (self._root, TreeVisibility.VISIBLE, True, False)
        ]

        while stack:
            node, visibility, revealed, children_done = stack.pop()
            is_root = node is self._root

            if not children_done:
                if not is_root:
                    visibility = self._filter_node(node, visibility)

                    if visibility == TreeVisibility.HIDDEN:
                        node.visible = False
                        node.render_node_count = 0
                        continue

                    if revealed:
                        result.append(node)

                # A Hidden verdict has already skipped the node above, so
                # children of a collapsed node are always evaluated; they are
                # only not emitted.
                child_revealed = revealed and not node.collapsed
                stack.append((node, visibility, revealed, True))
                stack.extend(
                    (child, visibility, child_revealed, False)
                    for child in reversed(node.children)
                )
                continue

            # Every child has settled its ``visible`` flag for this pass
            visible_child_index = 0
            children_render_count = 0
            for child in node.children:
                if child.visible:
                    child.visible_child_index = visible_child_index
                    visible_child_index += 1
                    children_render_count += child.render_node_count
                else:
                    child.visible_child_index = -1

            node.visible_children_count = visible_child_index

            if is_root:
                node.render_node_count = children_render_count
                continue

            if visibility == TreeVisibility.RECURSE:
                node.visible = visible_child_index > 0
            else:
                node.visible = True

            if not node.visible:
                node.render_node_count = 0
                # Nothing below an invisible node was emitted, so it is last
                if revealed:
                    result.pop()
            elif node.collapsed:
                node.render_node_count = 1
            else:
                node.render_node_count = 1 + children_render_count

    def _reset_visibility(self, node: TreeNode) -> None:
        stack = list(node.children)
        while stack:
            child = stack.pop()
            child.visible = True
            stack.extend(child.children)

    # =========================================================================
    # Location <-> List Index
    # =========================================================================

    def get_node_location(self, node: TreeNode) -> Location:
        """Walk parent references up to the root and return the sibling path."""
        location: Location = []

        while node.parent is not None:
            siblings = node.parent.children
            for index, sibling in enumerate(siblings):
                if sibling is node:
                    location.append(index)
                    break
            else:
                raise NodeNotFoundError(f"Node is not attached to the tree: {node!r}")
            node = node.parent

        if node is not self._root:
            raise NodeNotFoundError(f"Node belongs to another tree: {node!r}")

        location.reverse()
        return location

    def get_parent_node_with_list_index(self, location: Location) -> ParentLookup:
        """
        Translate a location into its parent node and absolute list index.

        Raises:
            InvalidLocationError: Empty location or an index out of range.
        """
        if not location:
            raise InvalidLocationError("Invalid tree location: empty location")

        node = self._root
        list_index = 0
        visible = True
        revealed = True
        last = len(location) - 1

        for depth, index in enumerate(location):
            # Only the final index may address the slot after the last child
            upper = len(node.children) if depth == last else len(node.children) - 1
            if index < 0 or index > upper:
                raise InvalidLocationError(f"Invalid tree location: {location}")

            for sibling in node.children[:index]:
                list_index += sibling.render_node_count

            visible = visible and node.visible
            revealed = revealed and node.visible and not node.collapsed

            if depth == last:
                return ParentLookup(node, list_index, visible, revealed)

            node = node.children[index]
            list_index += 1

    def get_tree_node_with_list_index(self, location: Location) -> NodeLookup:
        """Like get_parent_node_with_list_index, but for an existing node."""
        if not location:
            return NodeLookup(self._root, -1, True, True)

        parent, list_index, visible, revealed = self.get_parent_node_with_list_index(location)
        index = location[-1]

        if index >= len(parent.children):
            raise InvalidLocationError(f"Invalid tree location: {location}")

        node = parent.children[index]
        return NodeLookup(node, list_index, visible and node.visible, revealed and node.visible)
