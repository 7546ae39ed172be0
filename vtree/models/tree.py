"""
Tree - Reconciliation layer over TreeModel and SelectionList.

Keeps two side indices (element -> node, and id -> node through an
optional IdentityProvider) that are fed exclusively
by the model's splice hooks, and implements whole-subtree replacement that
carries collapse state over from the nodes being replaced.

Usage:
    class ById:
        def get_id(self, element):
            return element["id"]

    tree = Tree(identity=ById())
    tree.set_children(elements)
    tree.rerender()

    # Streaming refresh: new objects, same ids, collapse state survives
    tree.set_children(fresh_elements, identity="AMZN")
    tree.rerender()
"""
from typing import Any, Dict, Hashable, List, Optional, Protocol, Sequence, Union

from loguru import logger

from vtree.core.config import TreeOptions
from .nodes import Location, TreeElement, TreeNode
from .selection_list import SelectionList
from .tree_model import FilterFunction, TreeError, TreeModel


class IdentityProviderError(TreeError):
    """Raised when an identity lookup is requested without a provider."""
    pass


class ElementNotFoundError(TreeError, LookupError):
    """Raised when a target element or id is not in the tree."""
    pass


class IdentityProvider(Protocol):
    def get_id(self, element: Any) -> str:
        ...


def element_key(element: Any) -> Hashable:
    """
    Index key for an element payload.

    Hashable payloads match by value, so a rebuilt ``int`` or ``str`` finds
    the node of an equal one. Unhashable payloads (dicts, lists) match by
    object identity.
    """
    try:
        hash(element)
    except TypeError:
        return (False, id(element))
    return (True, element)


class Tree:
    """
    Composes a TreeModel with its render list and identity indices.

    Installing a filter on ``model`` (or through ``filter``) re-renders the
    list automatically. An exception raised by the filter propagates out of
    the assignment; the tree must then be discarded or re-rendered with a
    working filter.
    """

    def __init__(
        self,
        identity: Optional[IdentityProvider] = None,
        options: Optional[TreeOptions] = None,
    ):
        """
        Args:
            identity: Maps elements to stable string keys. Required for
                ``get_node_by_identity`` and ``set_children(identity=...)``.
            options: Node defaults forwarded to the model.
        """
        self._identity_provider = identity
        self._list: SelectionList[TreeNode] = SelectionList()
        self._model = TreeModel(self._list, None, options)
        self._nodes: Dict[Hashable, TreeNode] = {}
        self._nodes_by_identity: Dict[str, TreeNode] = {}
        self._disconnect_filter = self._model.on_filter_changed.connect(
            self.rerender, propagate_errors=True
        )

    @property
    def model(self) -> TreeModel:
        return self._model

    @property
    def list(self) -> SelectionList:
        return self._list

    @property
    def size(self) -> int:
        """Number of nodes currently in the tree, root excluded."""
        return len(self._nodes)

    @property
    def filter(self) -> Optional[FilterFunction]:
        return self._model.filter

    @filter.setter
    def filter(self, value) -> None:
        self._model.filter = value

    def dispose(self) -> None:
        self._disconnect_filter()
        self._model.dispose()
        self._list.dispose()

    # =========================================================================
    # Identity Indices
    # =========================================================================

    def get_node_by_element(self, element: Any) -> Optional[TreeNode]:
        return self._nodes.get(element_key(element))

    def get_node_by_identity(self, identity: str) -> Optional[TreeNode]:
        if self._identity_provider is None:
            raise IdentityProviderError(
                "An identity provider is required to use get_node_by_identity(...)"
            )
        return self._nodes_by_identity.get(identity)

    def _get_id(self, element: Any) -> str:
        return str(self._identity_provider.get_id(element))

    def _on_create_node(self, node: TreeNode) -> None:
        self._nodes[element_key(node.element)] = node
        if self._identity_provider is not None:
            self._nodes_by_identity[self._get_id(node.element)] = node

    def _on_delete_node(self, node: TreeNode) -> None:
        # Only drop entries that still point at this node; an element
        # re-inserted by the same splice already maps to its new node.
        key = element_key(node.element)
        if self._nodes.get(key) is node:
            del self._nodes[key]
        if self._identity_provider is not None:
            identity = self._get_id(node.element)
            if self._nodes_by_identity.get(identity) is node:
                del self._nodes_by_identity[identity]

    # =========================================================================
    # Mutation
    # =========================================================================

    def splice(
        self,
        location: Location,
        delete_count: int,
        to_insert: Sequence[Union[TreeElement, dict]],
    ) -> List[TreeNode]:
        """Model splice with the identity indices kept in sync."""
        return self._model.splice(
            location, delete_count, to_insert, self._on_create_node, self._on_delete_node
        )

    def set_children(
        self,
        children: Sequence[Union[TreeElement, dict]],
        element: Any = None,
        identity: Optional[str] = None,
    ) -> None:
        """
        Replace all children of a node, keeping collapse state of known elements.

        Args:
            children: New child descriptions.
            element: Target element, matched by reference then by identity.
            identity: Target id; takes precedence over ``element``.
            Root is the target when neither is given.

        Raises:
            IdentityProviderError: ``identity`` given without a provider.
            ElementNotFoundError: The target is not in the tree.
        """
        target = self._resolve_target(element, identity)
        location = self._model.get_node_location(target)
        elements = [TreeElement.model_validate(el) for el in children]
        reconciled = self._preserve_collapse_state(elements)

        self._model.splice(
            location + [0],
            len(target.children),
            reconciled,
            self._on_create_node,
            self._on_delete_node,
        )
        logger.debug(f"set_children at {location}: {len(reconciled)} children, {self.size} nodes")

    def rerender(self) -> None:
        """Re-flatten the model and push the whole result into the list."""
        rows = self._model.as_list()
        self._list.splice(0, len(self._list), rows)

    def _resolve_target(self, element: Any, identity: Optional[str]) -> TreeNode:
        if identity is not None:
            node = self.get_node_by_identity(identity)
            if node is None:
                raise ElementNotFoundError(f"Tree element not found: {identity}")
            return node

        if element is None:
            return self._model.root

        node = self._find_existing(element)
        if node is None:
            raise ElementNotFoundError(f"Tree element not found: {element!r}")
        return node

    def _find_existing(self, element: Any) -> Optional[TreeNode]:
        node = self.get_node_by_element(element)
        if node is None and self._identity_provider is not None:
            node = self._nodes_by_identity.get(self._get_id(element))
        return node

    def _preserve_collapse_state(self, elements: Optional[List[TreeElement]]) -> List[TreeElement]:
        if not elements:
            return []

        order: List[TreeElement] = []
        stack = list(elements)
        while stack:
            tree_element = stack.pop()
            order.append(tree_element)
            stack.extend(tree_element.children or ())

        # Children are copied before their parents
        copies: Dict[int, TreeElement] = {}
        for tree_element in reversed(order):
            update: Dict[str, Any] = {
                "children": [copies[id(child)] for child in tree_element.children or ()],
            }
            node = self._find_existing(tree_element.element)
            if node is not None:
                if tree_element.collapsible is None:
                    update["collapsible"] = node.collapsible
                if tree_element.collapsed is None:
                    update["collapsed"] = node.collapsed
            copies[id(tree_element)] = tree_element.model_copy(update=update)
        return [copies[id(tree_element)] for tree_element in elements]
