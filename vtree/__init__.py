"""
vtree - Tree model engine for virtualized, collapsible row lists.

Flattens large nested hierarchies into an index-stable render list,
applies cascading visibility filters, and reconciles refreshed data
against the existing tree so collapse state survives replacement.
"""

from vtree.core.events import Signal
from vtree.core.config import ConfigManager, AppConfig, TreeOptions, LoggingSettings
from vtree.core.logging import setup_logging

from vtree.models.nodes import Location, TreeElement, TreeNode, TreeVisibility
from vtree.models.selection_list import SelectionList
from vtree.models.tree_model import (
    TreeModel,
    TreeError,
    InvalidLocationError,
    NodeNotFoundError,
)
from vtree.models.tree import Tree, IdentityProvider, IdentityProviderError, ElementNotFoundError

__version__ = "0.1.0"

__all__ = [
    # Core
    "Signal",
    "ConfigManager",
    "AppConfig",
    "TreeOptions",
    "LoggingSettings",
    "setup_logging",

    # Models
    "Location",
    "TreeElement",
    "TreeNode",
    "TreeVisibility",
    "SelectionList",
    "TreeModel",
    "Tree",
    "IdentityProvider",

    # Errors
    "TreeError",
    "InvalidLocationError",
    "NodeNotFoundError",
    "IdentityProviderError",
    "ElementNotFoundError",
]
