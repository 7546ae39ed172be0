"""
Sample instrument hierarchy: ticker -> contract month -> price.

Used by the tests and handy for trying the model from a shell.
"""
import random
from typing import Any, Dict, List, Optional

from vtree.models.nodes import TreeElement, TreeVisibility

TICKERS = ["F", "AMZN", "NFLX", "GOOG", "APPL"]
CONTRACTS = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]
PRICES_PER_CONTRACT = 5
PRICE_ROW_HEIGHT = 15


def create_ticker_data(
    tickers: Optional[List[str]] = None,
    contracts: Optional[List[str]] = None,
    prices: int = PRICES_PER_CONTRACT,
    seed: Optional[int] = None,
) -> List[TreeElement]:
    """
    Build a three level tree of ``{"id", "text"}`` elements.

    Ids are path-like (``AMZN/JAN/0``) so they can back an identity provider.
    """
    rng = random.Random(seed)
    data = []

    for ticker in tickers or TICKERS:
        contract_nodes = []
        for contract in contracts or CONTRACTS:
            price_nodes = [
                TreeElement(
                    element={
                        "id": f"{ticker}/{contract}/{i}",
                        "text": round(rng.uniform(-100, 100), 2),
                    },
                    height=PRICE_ROW_HEIGHT,
                )
                for i in range(prices)
            ]
            contract_nodes.append(
                TreeElement(
                    element={"id": f"{ticker}/{contract}", "text": contract},
                    children=price_nodes,
                )
            )
        data.append(TreeElement(element={"id": ticker, "text": ticker}, children=contract_nodes))

    return data


class ElementIdentity:
    """Identity provider for the sample elements."""

    def get_id(self, element: Dict[str, Any]) -> str:
        return element["id"]


class TextFilter:
    """Show elements whose text contains ``query``; others only if a descendant matches."""

    def __init__(self, query: str):
        self.query = query.lower()

    def evaluate(self, element: Dict[str, Any]) -> TreeVisibility:
        if self.query in str(element["text"]).lower():
            return TreeVisibility.VISIBLE
        return TreeVisibility.RECURSE
