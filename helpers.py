import struct
from collections.abc import Mapping, Sequence
from typing import Any

_SIGN_MASK = 0x7FFF_FFFF_FFFF_FFFF
_INT64_MIN, _INT64_MAX = -2**63, 2**63 - 1


def total_order_key(price: float) -> int:
  """Integer key with IEEE-754 totalOrder semantics: -NaN < -inf < -0.0 < +0.0 < +inf < +NaN."""
  bits = struct.unpack('<q', struct.pack('<d', float(price)))[0]
  return bits ^ _SIGN_MASK if bits < 0 else bits


def parse_price(value: Any) -> float:
  if isinstance(value, (int, float, str)) and not isinstance(value, bool):
    try:
      return float(value)
    except (ValueError, OverflowError):
      pass
  return 0.0


def parse_size(value: Any) -> int:
  """Signed 64-bit contract count; floats, out-of-range and unreadable values become 0."""
  size = 0
  if isinstance(value, int) and not isinstance(value, bool):
    size = value
  elif isinstance(value, str):
    try:
      size = int(value)
    except ValueError:
      return 0
  return size if _INT64_MIN <= size <= _INT64_MAX else 0


def parse_level(entry: Any) -> tuple[float, int]:
  """[price, size] with numeric or string-encoded values; anything unreadable becomes 0."""
  if not isinstance(entry, Sequence) or isinstance(entry, str):
    return 0.0, 0
  price = parse_price(entry[0]) if len(entry) > 0 else 0.0
  size = parse_size(entry[1]) if len(entry) > 1 else 0
  return price, size


def _side(data: Any, name: str, depth: int) -> list[tuple[float, int]]:
  entries = data.get(name) if isinstance(data, Mapping) else None
  if not isinstance(entries, Sequence) or isinstance(entries, str):
    return []
  return [parse_level(e) for e in entries[:depth]]


def extract_levels(payload: Mapping, depth: int = 5) -> tuple[list[tuple[float, int]], list[tuple[float, int]]]:
  data = payload.get('data')
  return _side(data, 'bids', depth), _side(data, 'asks', depth)
