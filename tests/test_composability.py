import pytest
from lazy import count_down, indexed, lazy_filter, lazy_transform


FIXTURE = [5, 4, 3, 2, 1]


class TestComposability:
    """Test adapter nesting and method chaining"""

    def test_filter_over_transform_matches_transform_over_filter(self):
        """Filtering the mapped values equals mapping the pre-filtered values"""
        double = lambda x: x * 2
        mapped_gt_5 = lambda x: x > 5
        source_gt_2 = lambda x: x > 2  # x * 2 > 5 <=> x > 2 for ints

        result1 = lazy_filter(mapped_gt_5, lazy_transform(double, indexed(FIXTURE))).to_list()
        result2 = lazy_transform(double, lazy_filter(source_gt_2, indexed(FIXTURE))).to_list()

        assert result1 == result2, f"{result1} != {result2}"
        assert [v for _, v in result1] == [10, 8, 6]

    def test_grouping_does_not_change_output(self):
        """(filter . transform) . source and filter . (transform . source) agree"""
        add_one = lambda x: x + 1
        is_even = lambda x: x % 2 == 0

        inner = lazy_transform(add_one, indexed(FIXTURE))
        nested = lazy_filter(is_even, inner)
        chained = indexed(FIXTURE).transform(add_one).filter(is_even)
        raw = lazy_filter(is_even, inner.step, inner.state, inner.cursor)

        assert nested.to_list() == chained.to_list() == raw.to_list()
        assert list(nested.values()) == [6, 4, 2]

    def test_multiple_transforms(self):
        """Test composing multiple transforms"""
        result = list(
            indexed([1, 2, 3, 4, 5])
            .transform(lambda x: x * 2)
            .transform(lambda x: x + 1)
            .transform(lambda x: x * 3)
            .values()
        )
        expected = [9, 15, 21, 27, 33]  # ((x*2)+1)*3
        assert result == expected, f"Expected {expected}, got {result}"

    def test_multiple_filters(self):
        """Test composing multiple filters"""
        result = list(
            indexed(range(20))
            .filter(lambda x: x % 2 == 0)
            .filter(lambda x: x % 3 == 0)
            .filter(lambda x: x > 5)
            .values()
        )
        assert result == [6, 12, 18], f"Unexpected result: {result}"

    def test_empty_intermediate_results(self):
        """Transform after a reject-all filter is never called"""
        calls = []

        def track(x):
            calls.append(x)
            return x

        result = indexed([1, 2, 3]).filter(lambda x: x > 10).transform(track).to_list()
        assert result == []
        assert calls == []

    def test_deep_chain_over_count_down(self):
        """Filter over transform over count_down"""
        seq = lazy_filter(
            lambda s: s.endswith("!"),
            lazy_transform(lambda s: s + "!", count_down("hey", 3))
        )
        assert seq.to_list() == [(2, "hey!"), (1, "hey!"), (0, "hey!")]

    def test_partial_consumption_stays_lazy(self):
        """Only the pulled prefix is evaluated"""
        calls = []

        def square(x):
            calls.append(x)
            return x * x

        seq = indexed(range(1000)).transform(square).filter(lambda v: v % 2 == 0)
        assert seq.take(2) == [(0, 0), (2, 4)]
        assert calls == [0, 1, 2], f"Expected 3 evaluations, got {len(calls)}"

    @pytest.mark.parametrize("pipeline,expected", [
        (lambda s: s.filter(lambda x: x > 5).transform(lambda x: x * 2), [12, 14, 16, 18]),
        (lambda s: s.transform(lambda x: x * 2).filter(lambda x: x > 5), [6, 8, 10, 12, 14, 16, 18]),
    ])
    def test_operation_order_matters(self, pipeline, expected):
        """Different orders of non-commuting adapters give different results"""
        assert list(pipeline(indexed(range(10))).values()) == expected
