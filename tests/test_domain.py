"""Unit tests for the coordinate/parameter mapping."""
from __future__ import annotations

import math
import unittest

from hypersearch.domain import DomainMapper, round_half_up


class DomainMapperTests(unittest.TestCase):
    def test_identity_by_default(self) -> None:
        mapper = DomainMapper()
        self.assertEqual(mapper.to_real(0.37), 0.37)
        self.assertEqual(mapper.to_argument(0.37), 0.37)
        self.assertEqual(mapper.snap(0.37), 0.37)
        self.assertEqual(mapper.map_bounds(-1.0, 2.0), (-1.0, 2.0))

    def test_log_space_round_trip(self) -> None:
        mapper = DomainMapper(log_space=True)
        for value in (1e-9, 1e-3, 0.5, 1.0, 42.0, 1e6):
            self.assertAlmostEqual(mapper.to_real(mapper.to_coordinate(value)), value, delta=value * 1e-12)

    def test_log_space_rejects_non_positive(self) -> None:
        mapper = DomainMapper(log_space=True)
        with self.assertRaises(ValueError):
            mapper.to_coordinate(0.0)
        with self.assertRaises(ValueError):
            mapper.map_bounds(-1.0, 1.0)

    def test_integer_rounding_is_idempotent(self) -> None:
        mapper = DomainMapper(integer=True)
        for value in (0.2, 0.5, 1.49, 2.5, 7.0, -1.5, -0.2):
            once = mapper.round_if_integer(value)
            self.assertEqual(mapper.round_if_integer(once), once)
            self.assertTrue(once.is_integer())

    def test_half_rounds_up(self) -> None:
        self.assertEqual(round_half_up(2.5), 3.0)
        self.assertEqual(round_half_up(3.5), 4.0)
        self.assertEqual(round_half_up(2.4999), 2.0)

    def test_integer_snap_in_log_space(self) -> None:
        mapper = DomainMapper(log_space=True, integer=True)
        snapped = mapper.snap(math.log(6.7))
        self.assertAlmostEqual(snapped, math.log(7.0))
        self.assertEqual(mapper.to_argument(snapped), 7.0)

    def test_log_snap_never_goes_below_one(self) -> None:
        mapper = DomainMapper(log_space=True, integer=True)
        self.assertEqual(mapper.snap(math.log(0.1)), 0.0)

    def test_argument_combines_both_transforms(self) -> None:
        mapper = DomainMapper(log_space=True, integer=True)
        self.assertEqual(mapper.to_argument(math.log(4.4)), 4.0)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
