"""
Tests for division vocabulary: age groups, weight classes and DivisionKey.
"""

from datetime import date

import pytest

from ringside.services.division_rules import (
    ALL_WEIGHT_CLASS_VALUES,
    WEIGHT_CLASS_MEN_VALUES,
    WEIGHT_CLASS_OPEN_VALUES,
    WEIGHT_CLASS_WOMEN_VALUES,
    DivisionKey,
    age_group_from_birth_date,
    age_on,
    division_key_for,
    weight_class_from_kg,
    weight_class_range,
)

TODAY = date(2025, 6, 15)


class TestAgeGroups:
    def test_age_counts_full_years(self):
        assert age_on(date(2010, 6, 16), TODAY) == 14
        assert age_on(date(2010, 6, 15), TODAY) == 15

    @pytest.mark.parametrize(
        "birth_date,expected",
        [
            (date(2015, 1, 1), "U12"),
            (date(2013, 6, 16), "U12"),
            (date(2013, 6, 15), "U15"),
            (date(2010, 6, 15), "U18"),
            (date(2007, 6, 15), "U21"),
            (date(2004, 6, 15), "Adult"),
            (date(1990, 6, 16), "Adult"),
            (date(1990, 6, 15), "Senior"),
        ],
    )
    def test_age_group_boundaries(self, birth_date, expected):
        assert age_group_from_birth_date(birth_date, TODAY) == expected


class TestWeightClasses:
    def test_class_lists(self):
        assert WEIGHT_CLASS_MEN_VALUES == ["-60kg", "-65kg", "-70kg", "-75kg", "-81kg", "-86kg", "-91kg", "+91kg"]
        assert WEIGHT_CLASS_WOMEN_VALUES == ["-50kg", "-55kg", "-60kg", "-65kg", "-70kg", "+70kg"]
        assert WEIGHT_CLASS_OPEN_VALUES == ["-60kg", "-70kg", "-80kg", "+80kg"]
        assert len(ALL_WEIGHT_CLASS_VALUES) == len(set(ALL_WEIGHT_CLASS_VALUES))

    @pytest.mark.parametrize(
        "weight,gender,expected",
        [
            (59.9, "M", "-60kg"),
            (60, "M", "-65kg"),
            (90.9, "M", "-91kg"),
            (91, "M", "+91kg"),
            (49, "F", "-50kg"),
            (70, "F", "+70kg"),
            (79.5, "Open", "-80kg"),
            (80, "Open", "+80kg"),
        ],
    )
    def test_weight_class_from_kg(self, weight, gender, expected):
        assert weight_class_from_kg(weight, gender) == expected

    def test_range_uses_previous_threshold(self):
        assert weight_class_range("-65kg", "M") == (60, 64)

    def test_range_of_lowest_class(self):
        assert weight_class_range("-60kg", "M") == (52, 59)

    def test_range_of_open_top_class(self):
        assert weight_class_range("+91kg", "M") == (91, 106)

    @pytest.mark.parametrize("gender", ["M", "F", "Open"])
    def test_every_range_maps_back_to_its_class(self, gender):
        from ringside.services.division_rules import weight_class_values

        for weight_class in weight_class_values(gender):
            lo, hi = weight_class_range(weight_class, gender)
            assert lo <= hi
            for weight in (lo, hi):
                assert weight_class_from_kg(weight, gender) == weight_class

    def test_range_rejects_class_of_other_gender(self):
        with pytest.raises(ValueError):
            weight_class_range("-91kg", "F")


class TestDivisionKey:
    def test_normalized_and_parse(self):
        key = DivisionKey("Adult", "Kickboxing Light", "-70kg", "M")
        assert key.normalized() == "Adult|Kickboxing Light|-70kg|M"
        assert DivisionKey.parse(key.normalized()) == key

    def test_parse_rejects_wrong_arity(self):
        with pytest.raises(ValueError):
            DivisionKey.parse("Adult|K1|-70kg")

    def test_equal_keys_hash_equal(self):
        groups = {DivisionKey("U18", "K1", "-60kg", "F"): [1]}
        assert groups[DivisionKey("U18", "K1", "-60kg", "F")] == [1]

    def test_label(self):
        assert DivisionKey("Adult", "K1", "-70kg", "M").label() == "Adult - K1 - -70kg - Men"

    def test_division_key_for(self):
        key = division_key_for(date(2000, 1, 1), "MMA", 72.5, "M", TODAY)
        assert key == DivisionKey("Adult", "MMA", "-75kg", "M")
