# -*- coding: utf-8 -*-
"""
Tests for Tree (reconciliation layer)

Tests cover:
- Identity side indices fed by splice hooks
- set_children collapse-state preservation
- rerender and automatic re-render on filter change, with filter errors surfacing
"""
import pytest
from unittest.mock import MagicMock

from vtree.models.nodes import TreeElement, TreeVisibility
from vtree.models.tree import ElementNotFoundError, IdentityProviderError, Tree
from vtree.samples import ElementIdentity, TextFilter, create_ticker_data


def item(identity, text=None, children=None, **kwargs):
    """Fresh element dict wrapped in a TreeElement."""
    return TreeElement(element={"id": identity, "text": text or identity}, children=children, **kwargs)


def ids(nodes):
    return [node.element["id"] for node in nodes]


# =============================================================================
# Identity Indices
# =============================================================================

class TestIdentityIndices:
    """Side indices stay in sync with tree membership."""

    def test_set_children_populates_indices(self, tree, ticker_data):
        tree.set_children(ticker_data)

        assert tree.size == 14
        amzn_jan = tree.get_node_by_identity("AMZN/JAN")
        assert amzn_jan.element["text"] == "JAN"
        assert tree.get_node_by_element(amzn_jan.element) is amzn_jan

    def test_unknown_lookups_return_none(self, tree, ticker_data):
        tree.set_children(ticker_data)

        assert tree.get_node_by_identity("MSFT") is None
        assert tree.get_node_by_element({"id": "AMZN"}) is None

    def test_identity_lookup_requires_provider(self):
        plain = Tree()

        with pytest.raises(IdentityProviderError):
            plain.get_node_by_identity("AMZN")

    def test_replacement_removes_stale_entries(self, tree, ticker_data):
        tree.set_children(ticker_data)

        tree.set_children([item("AMZN", children=[item("AMZN/JAN")])])

        assert tree.size == 2
        assert tree.get_node_by_identity("F") is None
        assert tree.get_node_by_identity("AMZN/FEB") is None
        assert tree.get_node_by_identity("AMZN/JAN") is not None

    def test_reinserting_same_elements_keeps_entries(self, tree, ticker_data):
        tree.set_children(ticker_data)
        first = tree.get_node_by_element(ticker_data[0].element)

        tree.set_children(ticker_data)

        second = tree.get_node_by_element(ticker_data[0].element)
        assert tree.size == 14
        assert second is not None
        assert second is not first
        assert tree.get_node_by_identity("F") is second

    def test_splice_keeps_indices(self, tree):
        tree.splice([0], 0, [item("A", children=[item("A/1")]), item("B")])
        assert tree.size == 3

        deleted = tree.splice([0], 1, [])

        assert ids(deleted) == ["A"]
        assert tree.size == 1
        assert tree.get_node_by_identity("A/1") is None
        assert tree.get_node_by_identity("B") is not None

    def test_elements_need_not_be_hashable(self):
        plain = Tree()
        payload = {"id": "x", "text": "x"}

        plain.set_children([TreeElement(element=payload)])

        assert plain.get_node_by_element(payload).element is payload

    def test_equal_hashable_payloads_match_by_value(self):
        plain = Tree()
        plain.set_children([TreeElement(element=int("1000")), TreeElement(element="".join(["ti", "cker"]))])

        assert plain.get_node_by_element(1000) is plain.model.root.children[0]
        assert plain.get_node_by_element("ticker") is plain.model.root.children[1]
        assert plain.get_node_by_element(1001) is None


# =============================================================================
# set_children
# =============================================================================

class TestSetChildren:
    """Reconciliation of fresh nested descriptions."""

    def test_root_replacement_renders(self, tree, ticker_data):
        tree.set_children(ticker_data)
        tree.rerender()

        assert len(tree.list) == 14
        assert ids(tree.list)[:4] == ["F", "F/JAN", "F/JAN/0", "F/JAN/1"]

    def test_collapse_state_survives_by_identity(self, tree, ticker_data):
        tree.set_children(ticker_data)

        tree.set_children([
            item("AMZN/JAN", "JAN", children=[item("AMZN/JAN/0")], collapsed=True),
        ], identity="AMZN")
        first = tree.get_node_by_identity("AMZN/JAN")
        assert first.collapsed is True

        # New objects, same ids, collapsed left unset
        tree.set_children([
            item("AMZN/JAN", "JAN", children=[item("AMZN/JAN/0")]),
        ], identity="AMZN")

        second = tree.get_node_by_identity("AMZN/JAN")
        assert second is not first
        assert second.collapsed is True
        assert second.collapsible is True

    def test_collapse_state_survives_by_reference(self):
        plain = Tree()
        ticker = {"text": "AMZN"}
        contract = {"text": "JAN"}
        plain.set_children([TreeElement(element=ticker, children=[TreeElement(element=contract)])])
        plain.model.set_collapsed(plain.get_node_by_element(ticker), True)

        plain.set_children([TreeElement(element=ticker, children=[TreeElement(element=contract)])])
        plain.rerender()

        assert plain.get_node_by_element(ticker).collapsed is True
        assert [node.element for node in plain.list] == [ticker]

    def test_collapse_state_survives_for_rebuilt_scalar_payloads(self):
        plain = Tree()
        plain.set_children([TreeElement(element=int("1000"), children=[TreeElement(element="a")])])
        plain.model.set_collapsed(plain.get_node_by_element(1000), True)

        # Parsers and streams hand back fresh int/str objects on every refresh
        plain.set_children([
            TreeElement(element=int("1000"), children=[TreeElement(element="".join(["a"]))]),
        ])
        plain.rerender()

        assert plain.get_node_by_element(1000).collapsed is True
        assert [node.element for node in plain.list] == [1000]
        assert plain.size == 2

    def test_explicit_flags_override_previous_state(self, tree):
        tree.set_children([item("AMZN", children=[item("AMZN/JAN")], collapsed=True)])

        tree.set_children([item("AMZN", children=[item("AMZN/JAN")], collapsed=False)])

        assert tree.get_node_by_identity("AMZN").collapsed is False

    def test_collapsed_state_from_ui_is_preserved(self, tree, ticker_data):
        tree.set_children(ticker_data)
        tree.rerender()
        tree.model.set_collapsed(tree.get_node_by_identity("F"), True)
        assert ids(tree.list) == ["F", "AMZN", "AMZN/JAN", "AMZN/JAN/0", "AMZN/JAN/1",
                                  "AMZN/FEB", "AMZN/FEB/0", "AMZN/FEB/1"]

        # Streaming refresh with brand new objects
        tree.set_children(create_ticker_data(tickers=["F", "AMZN"], contracts=["JAN", "FEB"], prices=2, seed=8))
        tree.rerender()

        assert ids(tree.list)[:2] == ["F", "AMZN"]
        assert len(tree.list) == 8

    def test_nested_target_by_element(self, tree, ticker_data):
        tree.set_children(ticker_data)
        amzn = tree.get_node_by_identity("AMZN")

        tree.set_children([item("AMZN/MAR")], element=amzn.element)
        tree.rerender()

        assert ids(amzn.children) == ["AMZN/MAR"]
        assert ids(tree.list)[-2:] == ["AMZN", "AMZN/MAR"]
        assert tree.size == 9

    def test_target_matched_by_identity_of_new_object(self, tree, ticker_data):
        tree.set_children(ticker_data)

        tree.set_children([item("AMZN/APR")], element={"id": "AMZN", "text": "AMZN"})

        assert ids(tree.get_node_by_identity("AMZN").children) == ["AMZN/APR"]

    def test_unknown_target_raises(self, tree, ticker_data):
        tree.set_children(ticker_data)

        with pytest.raises(ElementNotFoundError):
            tree.set_children([], identity="MSFT")

        with pytest.raises(ElementNotFoundError):
            tree.set_children([], element={"id": "MSFT", "text": "MSFT"})

        assert tree.size == 14

    def test_identity_target_requires_provider(self):
        plain = Tree()

        with pytest.raises(IdentityProviderError):
            plain.set_children([], identity="AMZN")

    def test_unknown_element_without_provider_raises(self):
        plain = Tree()

        with pytest.raises(ElementNotFoundError):
            plain.set_children([], element="missing")


# =============================================================================
# Rendering
# =============================================================================

class TestRerender:
    """Render list updates."""

    def test_rerender_is_a_single_splice(self, tree, ticker_data):
        tree.set_children(ticker_data)
        on_splice = MagicMock()
        tree.list.on_splice.connect(on_splice)

        tree.rerender()

        on_splice.assert_called_once_with(0)

    def test_filter_change_rerenders(self, tree):
        tree.set_children(create_ticker_data(seed=2))
        tree.rerender()

        tree.filter = TextFilter("AMZN")

        assert ids(tree.list) == ["AMZN"]
        assert isinstance(tree.filter(tree.list.get_item(0).element), TreeVisibility)

        tree.filter = None

        assert len(tree.list) == 5 * (1 + 12 * (1 + 5))

    def test_collapse_through_model_updates_list(self, tree, ticker_data):
        tree.set_children(ticker_data)
        tree.rerender()

        tree.model.set_collapsed(tree.get_node_by_identity("AMZN"), True)

        assert ids(tree.list) == ["F", "F/JAN", "F/JAN/0", "F/JAN/1",
                                  "F/FEB", "F/FEB/0", "F/FEB/1", "AMZN"]

    def test_dispose_stops_rerendering(self, ticker_data):
        disposable = Tree(identity=ElementIdentity())
        disposable.set_children(ticker_data)
        disposable.rerender()

        disposable.dispose()
        disposable.model.filter = lambda el: TreeVisibility.HIDDEN

        assert len(disposable.list) == 14

    def test_raising_filter_propagates(self, tree):
        tree.set_children([item("AMZN"), TreeElement(element={"id": "F"})])
        tree.rerender()

        with pytest.raises(KeyError):
            tree.filter = lambda el: TreeVisibility.VISIBLE if "A" in el["text"] else TreeVisibility.RECURSE

    def test_raising_filter_on_model_propagates(self, tree):
        tree.set_children([TreeElement(element={"id": "F"})])

        with pytest.raises(KeyError):
            tree.model.filter = lambda el: TreeVisibility(len(el["text"]))
