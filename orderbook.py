from collections.abc import Iterable

from sortedcontainers import SortedSet

from display import display_ladder, format_ladder
from models import DEFAULT_SYMBOL, LevelTuple, PriceLevel


class LadderSnapshot:
  """
  Top-of-book view for one symbol: two price-ascending sets of PriceLevel, unique by price.
  Every replace() discards the previous contents; depth is bounded by the caller.
  """

  def __init__(self, symbol: str = DEFAULT_SYMBOL) -> None:
    self.symbol = symbol
    self.bids: SortedSet = SortedSet()
    self.asks: SortedSet = SortedSet()

  def replace(self, bid_levels: Iterable[LevelTuple], ask_levels: Iterable[LevelTuple]) -> None:
    self.bids.clear()
    self.asks.clear()
    for price, size in bid_levels:
      self.bids.add(PriceLevel(price, size))
    for price, size in ask_levels:
      self.asks.add(PriceLevel(price, size))

  def best_bid(self) -> PriceLevel | None:
    return self.bids[-1] if self.bids else None

  def best_ask(self) -> PriceLevel | None:
    return self.asks[0] if self.asks else None

  def render(self) -> str:
    return format_ladder(self.bids, reversed(self.asks), self.symbol)

  def display(self, clear: bool = False) -> None:
    display_ladder(self.render(), clear=clear)

  def __repr__(self) -> str:
    return f'LadderSnapshot(symbol={self.symbol!r}, bids={len(self.bids)}, asks={len(self.asks)})'
