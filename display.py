import os
from collections.abc import Iterable

from models import PriceLevel

HEADER = ('Type', 'Symbol', 'Price', 'Contract size')


def format_ladder(bids: Iterable[PriceLevel], asks: Iterable[PriceLevel], symbol: str) -> str:
  """Bids as given, then asks as given; callers pass asks already reversed."""
  rows = [('Bids', symbol, str(lvl.price), str(lvl.size)) for lvl in bids]
  rows += [('Asks', symbol, str(lvl.price), str(lvl.size)) for lvl in asks]
  widths = [max(len(r[i]) for r in [HEADER, *rows]) for i in range(len(HEADER))]

  def format_row(row: tuple[str, ...]) -> str:
    return ' | '.join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip()

  sep = '-+-'.join('-' * w for w in widths)
  return '\n'.join([format_row(HEADER), sep, *(format_row(r) for r in rows)])


def display_ladder(table: str, clear: bool = False) -> None:
  if clear:
    os.system('cls' if os.name == 'nt' else 'clear')
  print('Current order book state')
  print(table, flush=True)
