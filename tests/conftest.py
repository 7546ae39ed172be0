import pytest

from vtree.core.config import TreeOptions
from vtree.models.selection_list import SelectionList
from vtree.models.tree_model import TreeModel
from vtree.models.tree import Tree
from vtree.samples import ElementIdentity, create_ticker_data


@pytest.fixture
def rows():
    return SelectionList()

@pytest.fixture
def model(rows):
    return TreeModel(rows)

@pytest.fixture
def tree():
    """Tree keyed by the sample elements' ``id`` field."""
    t = Tree(identity=ElementIdentity())
    yield t
    t.dispose()

@pytest.fixture
def ticker_data():
    # 2 tickers x 2 contracts x 2 prices = 14 nodes
    return create_ticker_data(tickers=["F", "AMZN"], contracts=["JAN", "FEB"], prices=2, seed=7)

@pytest.fixture
def auto_expand_model(rows):
    return TreeModel(rows, options=TreeOptions(auto_expand_single_children=True))
