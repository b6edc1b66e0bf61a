"""
tests/test_filters.py

Dashboard cohort filters and ranking slices.
"""

from __future__ import annotations

import pytest

from app.domain.filters import CohortFilters, InvalidFilterError, RankingSlices
from conftest import make_submission
from stats.aggregation import facets_of


class TestCohortFiltersParse:
    def test_empty(self) -> None:
        filters = CohortFilters.parse()
        assert filters.is_empty()
        assert filters.to_dict() == {}

    def test_canonical_form_is_sorted_and_deduplicated(self) -> None:
        filters = CohortFilters.parse(city=["Pune", " Delhi", "Pune", ""], yoe=["3", "1", "3.0"])
        assert filters.city == ("Delhi", "Pune")
        assert filters.yoe == (1, 3)

    def test_age_accepts_exact_and_bands(self) -> None:
        filters = CohortFilters.parse(age=["31", "25-29", "50+"])
        assert filters.ages == (31,)
        assert filters.age_bands == ("25–29", "50+")
        assert filters.to_dict() == {"age": ["31", "25–29", "50+"]}

    @pytest.mark.parametrize("raw", ["thirty", "31.5", "26-30"])
    def test_bad_age(self, raw: str) -> None:
        with pytest.raises(InvalidFilterError):
            CohortFilters.parse(age=[raw])

    @pytest.mark.parametrize("raw", ["few", "nan", "inf"])
    def test_bad_yoe(self, raw: str) -> None:
        with pytest.raises(InvalidFilterError):
            CohortFilters.parse(yoe=[raw])

    def test_fractional_yoe_kept_canonical(self) -> None:
        filters = CohortFilters.parse(yoe=["2.5", "3.0", "3"])
        assert filters.yoe == (2.5, 3.0)
        assert filters.to_dict() == {"yoe": [2.5, 3]}
        assert filters.fingerprint() == CohortFilters.parse(yoe=["3", "2.50"]).fingerprint()

    def test_fingerprint_independent_of_input_order(self) -> None:
        a = CohortFilters.parse(city=["Pune", "Delhi"], occupation=["Doctor"], age=["30–34"])
        b = CohortFilters.parse(age=["30-34"], occupation=["Doctor"], city=["Delhi", "Pune", "Delhi"])
        assert a.fingerprint() == b.fingerprint()

    def test_fingerprint_differs_per_filter_set(self) -> None:
        assert CohortFilters.parse(city=["Pune"]).fingerprint() != CohortFilters.parse(city=["Delhi"]).fingerprint()
        assert CohortFilters.parse().fingerprint() == "{}"


class TestCohortFiltersMatch:
    def test_union_within_and_intersection_across_dimensions(self) -> None:
        subs = [
            make_submission(id="1", city="Pune", occupation="Doctor"),
            make_submission(id="2", city="Delhi", occupation="Doctor"),
            make_submission(id="3", city="Delhi", occupation="Engineer"),
            make_submission(id="4", city="Mumbai", occupation="Doctor"),
        ]
        filters = CohortFilters.parse(city=["Pune", "Delhi"], occupation=["Doctor"])
        assert [s.id for s in filters.apply(subs)] == ["1", "2"]

    def test_age_exact_or_band(self) -> None:
        subs = [
            make_submission(id="a", age=31),
            make_submission(id="b", age=27),
            make_submission(id="c", age=40),
            make_submission(id="d"),
        ]
        filters = CohortFilters.parse(age=["31", "25–29"])
        assert [s.id for s in filters.apply(subs)] == ["a", "b"]

    def test_yoe_matches_by_equality(self) -> None:
        subs = [make_submission(id="a", yoe=3), make_submission(id="b", yoe=3.5), make_submission(id="c")]
        assert [s.id for s in CohortFilters.parse(yoe=["3"]).apply(subs)] == ["a"]
        assert [s.id for s in CohortFilters.parse(yoe=["3.5"]).apply(subs)] == ["b"]

    def test_yoe_facet_values_work_as_filters(self) -> None:
        subs = [
            make_submission(id="a", yoe=2.5),
            make_submission(id="b", yoe=3.0),
            make_submission(id="c", yoe=7),
        ]
        offered = facets_of(subs)["yoe_ranges"]
        assert offered == ["2.5", "3", "7"]
        for value, expected in zip(offered, ["a", "b", "c"]):
            assert [s.id for s in CohortFilters.parse(yoe=[value]).apply(subs)] == [expected]
        assert len(CohortFilters.parse(yoe=offered).apply(subs)) == 3

    def test_empty_filters_match_everything(self, population) -> None:
        assert CohortFilters().apply(population) == population


class TestRankingSlices:
    def test_parse_and_predicates(self) -> None:
        slices = RankingSlices.parse(city="Pune", age="30-34", yoe="5", income_bracket="₹10L–₹15L")
        assert slices.age_band == "30–34"
        assert set(slices.predicates()) == {"city", "age", "yoe", "income_bracket"}

    def test_fractional_yoe_slice(self) -> None:
        predicate = RankingSlices.parse(yoe="2.5").predicates()["yoe"]
        assert predicate(make_submission(yoe=2.5))
        assert not predicate(make_submission(yoe=2))

    def test_blank_values_are_unset(self) -> None:
        slices = RankingSlices.parse(city="  ", occupation="", age=None)
        assert slices.predicates() == {}

    def test_unknown_age_band(self) -> None:
        with pytest.raises(InvalidFilterError):
            RankingSlices.parse(age="31")

    def test_income_bracket_falls_back_to_computed_slab(self) -> None:
        predicate = RankingSlices(income_bracket="₹10L–₹15L").predicates()["income_bracket"]
        assert predicate(make_submission(income_yearly=1_240_000))
        assert predicate(make_submission(income_bracket="₹10L–₹15L"))
        assert not predicate(make_submission(income_yearly=400_000))
        assert not predicate(make_submission())
