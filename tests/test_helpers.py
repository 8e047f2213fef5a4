"""Tests for level parsing and extraction."""

import math

from helpers import extract_levels, parse_level, parse_price, parse_size, total_order_key


class TestTotalOrderKey:
  def test_matches_float_order_for_ordinary_values(self):
    values = [-1e9, -3.5, -1e-300, 0.0, 1e-300, 2.0, 1e9]
    assert sorted(values, key=total_order_key) == sorted(values)

  def test_nan_sorts_after_infinity(self):
    assert total_order_key(math.inf) < total_order_key(math.nan)

  def test_negative_nan_sorts_first(self):
    assert total_order_key(-math.nan) < total_order_key(-math.inf)


class TestParseLevel:
  def test_string_encoded(self):
    assert parse_level(['60000.0', '1']) == (60000.0, 1)

  def test_native_numeric(self):
    assert parse_level([60000.0, 1]) == (60000.0, 1)

  def test_unparseable_defaults_to_zero(self):
    assert parse_level(['bad', 'bad']) == (0.0, 0)

  def test_mixed(self):
    assert parse_level([100, '4']) == (100.0, 4)

  def test_short_or_invalid_entry(self):
    assert parse_level(['101.5']) == (101.5, 0)
    assert parse_level([]) == (0.0, 0)
    assert parse_level(None) == (0.0, 0)
    assert parse_level('100') == (0.0, 0)

  def test_size_rejects_fractional_values(self):
    assert parse_size('1.5') == 0
    assert parse_size(2.5) == 0

  def test_native_float_size_is_zero(self):
    assert parse_level([1.0, 3.0]) == (1.0, 0)

  def test_size_outside_int64_is_zero(self):
    assert parse_level(['1.0', '99999999999999999999']) == (1.0, 0)
    assert parse_level([1.0, 10**20]) == (1.0, 0)
    assert parse_level([1.0, -2**63 - 1]) == (1.0, 0)

  def test_size_at_int64_bounds(self):
    assert parse_size(str(2**63 - 1)) == 2**63 - 1
    assert parse_size(-2**63) == -2**63

  def test_bool_is_not_numeric(self):
    assert parse_price(True) == 0.0
    assert parse_size(True) == 0


class TestExtractLevels:
  def test_takes_at_most_depth_entries(self):
    payload = {'data': {
      'bids': [[str(100 - i), '1'] for i in range(8)],
      'asks': [[str(101 + i), '1'] for i in range(8)],
    }}
    bids, asks = extract_levels(payload, depth=5)
    assert len(bids) == 5
    assert len(asks) == 5
    assert bids[0] == (100.0, 1)
    assert asks[-1] == (105.0, 1)

  def test_missing_side_is_empty(self):
    bids, asks = extract_levels({'data': {'bids': [['100.0', '2']]}})
    assert bids == [(100.0, 2)]
    assert asks == []

  def test_missing_data(self):
    assert extract_levels({'type': 'message'}) == ([], [])

  def test_malformed_entry_does_not_abort_update(self):
    bids, _ = extract_levels({'data': {'bids': [['bad', 'x'], ['99.0', '3']]}})
    assert bids == [(0.0, 0), (99.0, 3)]
