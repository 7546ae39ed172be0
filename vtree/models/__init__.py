"""
Tree models.

- TreeModel: Node graph, splice, collapse, filtering, flattening
- SelectionList: Flat render list with selection cursor
- Tree: Reconciliation layer with identity indices
"""
from .nodes import Location, TreeElement, TreeNode, TreeVisibility
from .selection_list import SelectionList
from .tree_model import (
    TreeModel,
    TreeError,
    InvalidLocationError,
    NodeNotFoundError,
    ParentLookup,
    NodeLookup,
)
from .tree import Tree, IdentityProvider, IdentityProviderError, ElementNotFoundError
