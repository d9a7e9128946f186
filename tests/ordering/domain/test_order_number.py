"""Tests for OrderNumberGenerator."""

import random
import re
from itertools import count

import pytest
from ordering.order.order_number import OrderNumberGenerator

ORDER_NUMBER_PATTERN = re.compile(r"^ORD-\d+-\d{3}$")


class FixedRandom(random.Random):
    def __init__(self, value):
        super().__init__()
        self.value = value

    def randrange(self, *args, **kwargs):
        return self.value


class TestOrderNumberFormat:
    def test_default_format(self):
        assert ORDER_NUMBER_PATTERN.match(OrderNumberGenerator().generate())

    def test_uses_injected_clock_and_random(self):
        generator = OrderNumberGenerator(clock=lambda: 1700000000000, rng=FixedRandom(42))
        assert generator.generate() == "ORD-1700000000000-042"

    def test_suffix_is_zero_padded(self):
        generator = OrderNumberGenerator(clock=lambda: 1, rng=FixedRandom(7))
        assert generator.generate() == "ORD-1-007"

    def test_suffix_upper_bound(self):
        generator = OrderNumberGenerator(clock=lambda: 1, rng=FixedRandom(999))
        assert generator.generate().endswith("-999")

    def test_custom_prefix(self):
        generator = OrderNumberGenerator(prefix="TST", clock=lambda: 5, rng=FixedRandom(0))
        assert generator.generate() == "TST-5-000"

    def test_seeded_generators_are_deterministic(self):
        first = OrderNumberGenerator(clock=lambda: 10, rng=random.Random(3))
        second = OrderNumberGenerator(clock=lambda: 10, rng=random.Random(3))
        assert [first.generate() for _ in range(5)] == [second.generate() for _ in range(5)]


class TestOrderNumberUniqueness:
    @pytest.mark.slow
    def test_ten_thousand_numbers_with_advancing_clock_are_unique(self):
        ticks = count(1700000000000)
        generator = OrderNumberGenerator(clock=lambda: next(ticks), rng=random.Random(1))
        numbers = [generator.generate() for _ in range(10_000)]
        assert len(set(numbers)) == 10_000
        assert all(ORDER_NUMBER_PATTERN.match(n) for n in numbers)

    @pytest.mark.slow
    def test_collisions_within_a_millisecond_stay_near_one_in_a_thousand(self):
        # Five orders per millisecond for 2,000 milliseconds: 10 pairs per
        # millisecond, so about 20 colliding pairs are expected overall.
        calls = count()
        generator = OrderNumberGenerator(clock=lambda: 1700000000000 + next(calls) // 5, rng=random.Random(7))
        numbers = [generator.generate() for _ in range(10_000)]

        assert len({n.split("-")[1] for n in numbers}) == 2_000
        duplicates = len(numbers) - len(set(numbers))
        assert duplicates <= 60

    @pytest.mark.slow
    def test_suffixes_cover_the_whole_range_at_a_fixed_millisecond(self):
        generator = OrderNumberGenerator(clock=lambda: 1700000000000, rng=random.Random(11))
        suffixes = {int(generator.generate()[-3:]) for _ in range(10_000)}
        assert min(suffixes) >= 0 and max(suffixes) <= 999
        assert len(suffixes) >= 990
