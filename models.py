import os
from dataclasses import dataclass, field
from typing import TypedDict

from helpers import total_order_key

MAX_DEPTH = 5
DEFAULT_SYMBOL = 'ETHUSDTM'
DEFAULT_TOKEN_URL = 'https://api-futures.kucoin.com/api/v1/bullet-public'

LevelTuple = tuple[float, int]


class LadderData(TypedDict, total=False):
  bids: list[list[float | str]]
  asks: list[list[float | str]]
  symbol: str
  timestamp: int


class LadderUpdate(TypedDict, total=False):
  type: str
  topic: str
  subject: str
  data: LadderData


@dataclass(frozen=True, order=True)
class PriceLevel:
  """One (price, size) point on one side. Compared, hashed and sorted by price only."""
  price: float = field(compare=False)
  size: int = field(compare=False, default=0)
  _key: int = field(init=False, repr=False)

  def __post_init__(self) -> None:
    object.__setattr__(self, '_key', total_order_key(self.price))

  def as_tuple(self) -> LevelTuple:
    return self.price, self.size


@dataclass(frozen=True)
class WsCredential:
  endpoint: str
  token: str
  ping_interval_ms: int | None = None

  @property
  def url(self) -> str:
    return f'{self.endpoint}?token={self.token}'


@dataclass
class FeedConfig:
  symbol: str = field(default_factory=lambda: os.getenv('KUCOIN_FUTURES_SYMBOL', DEFAULT_SYMBOL))
  token_url: str = field(default_factory=lambda: os.getenv('KUCOIN_FUTURES_TOKEN_URL', DEFAULT_TOKEN_URL))
  depth: int = MAX_DEPTH
  http_timeout: float = 10.0
  recv_timeout: float | None = None
  display: bool = True
  clear_screen: bool = False

  @property
  def topic(self) -> str:
    return f'/contractMarket/level2Depth5:{self.symbol}'
