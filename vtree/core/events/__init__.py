"""
Event System - Synchronous observer notifications.

Provides:
- Signal: Simple observer pattern used by the tree model, the selection
  list and the configuration manager.

Usage:
    from vtree.core.events import Signal

    on_splice = Signal("on_splice")
    unsubscribe = on_splice.connect(lambda start: print(start))
    on_splice.emit(0)
    unsubscribe()
"""
from .observer import Signal


__all__ = ["Signal"]
