"""
Daily Aggregation Tests

Validates one-row-per-date reduction with explicit per-column resolution.
"""

import numpy as np
import pandas as pd
import pytest

from src.daylog.aggregate import (Resolution, aggregate_daily,
                                  aggregate_expenses, aggregate_steps,
                                  aggregate_transit, build_food_columns,
                                  expense_schema, flag_resolution,
                                  majority_vote, transit_schema)
from src.daylog.errors import DataFormatError


class TestMajorityVote:
    """Most frequent value; ties go to the first value seen"""

    def test_clear_majority(self):
        assert majority_vote(["A", "A", "B"]) == "A"

    def test_majority_not_first(self):
        assert majority_vote(["B", "A", "A"]) == "A"

    def test_tie_first_seen_wins(self):
        assert majority_vote(["A", "B"]) == "A"
        assert majority_vote(["B", "A"]) == "B"
        assert majority_vote(["C", "B", "B", "C"]) == "C"

    def test_missing_values_ignored(self):
        assert majority_vote([np.nan, "B", None, "B", "A"]) == "B"

    def test_all_missing(self):
        assert pd.isna(majority_vote([np.nan, None]))

    def test_booleans(self):
        assert majority_vote([True, False, False]) is False


class TestAggregateDaily:
    """Exactly one row per distinct date"""

    def test_majority_column(self):
        records = pd.DataFrame({
            "date": ["2021-09-01", "2021-09-01", "2021-09-01"],
            "category": ["A", "A", "B"],
        })

        daily = aggregate_daily(records, {"category": Resolution.MAJORITY})

        assert daily["category"].tolist() == ["A"]

    def test_majority_tie_deterministic(self):
        records = pd.DataFrame({
            "date": ["2021-09-01", "2021-09-01"],
            "category": ["B", "A"],
        })

        first = aggregate_daily(records, {"category": Resolution.MAJORITY})
        second = aggregate_daily(records, {"category": Resolution.MAJORITY})

        assert first["category"].tolist() == ["B"]
        pd.testing.assert_frame_equal(first, second)

    def test_sum_column(self):
        records = pd.DataFrame({
            "date": ["2021-09-02", "2021-09-02"],
            "transit_count": [2, 3],
        })

        daily = aggregate_daily(records, {"transit_count": Resolution.SUM})

        assert daily["transit_count"].tolist() == [5]

    def test_any_column(self):
        records = pd.DataFrame({
            "date": ["2021-09-02", "2021-09-02", "2021-09-02"],
            "Home": [False, True, False],
        })

        daily = aggregate_daily(records, {"Home": Resolution.ANY})

        assert daily["Home"].tolist() == [True]
        assert daily["Home"].dtype == bool

    def test_unique_ascending_dates_from_unordered_input(self):
        records = pd.DataFrame({
            "date": ["2021-09-03", "2021-09-01", "2021-09-03", "2021-09-02"],
            "n": [1, 1, 1, 1],
        })

        daily = aggregate_daily(records, {"n": Resolution.SUM})

        assert daily["date"].tolist() == list(pd.date_range("2021-09-01", periods=3))
        assert daily["n"].tolist() == [1, 1, 2]
        assert not daily["date"].duplicated().any()

    @pytest.mark.fail_loud
    def test_malformed_date_rejected(self):
        records = pd.DataFrame({
            "date": ["2021-09-01", "31/31/2021"],
            "n": [1, 1],
        })

        with pytest.raises(DataFormatError, match="31/31/2021"):
            aggregate_daily(records, {"n": Resolution.SUM}, source="transit")

    @pytest.mark.fail_loud
    def test_missing_schema_column_rejected(self):
        records = pd.DataFrame({"date": ["2021-09-01"]})

        with pytest.raises(DataFormatError, match="n"):
            aggregate_daily(records, {"n": Resolution.SUM})

    def test_empty_input(self):
        records = pd.DataFrame({"date": [], "n": [], "Home": []})

        daily = aggregate_daily(records, {"n": Resolution.SUM, "Home": Resolution.ANY})

        assert daily.empty
        assert list(daily.columns) == ["date", "n", "Home"]

    def test_input_not_mutated(self):
        records = pd.DataFrame({"date": ["2021-09-01"], "n": [1]})
        before = records.copy()

        aggregate_daily(records, {"n": Resolution.SUM})

        pd.testing.assert_frame_equal(records, before)


class TestSchemas:
    """Resolution tags are declared once per source"""

    def test_transit_schema(self):
        schema = transit_schema(["Home", "School"])
        assert schema == {
            "transit_count": Resolution.SUM,
            "Home": Resolution.ANY,
            "School": Resolution.ANY,
        }

    def test_expense_schema_majority_flags(self):
        schema = expense_schema(["Home"], flags="majority")
        assert schema["Home"] is Resolution.MAJORITY
        assert schema["essential_food_total"] is Resolution.SUM
        assert schema["nonessential_food_total"] is Resolution.SUM

    @pytest.mark.parametrize("name", ["sum", "mode", ""])
    def test_invalid_flag_resolution(self, name):
        with pytest.raises(ValueError):
            flag_resolution(name)


class TestFlagResolution:
    """ANY (default) vs MAJORITY on a day with several legs"""

    @pytest.fixture
    def tagged_transit(self):
        return pd.DataFrame({
            "date": pd.to_datetime(["2021-09-02"] * 3),
            "transit_count": [1, 1, 1],
            "Home": [True, False, False],
            "School": [True, True, False],
        })

    def test_any_flags(self, tagged_transit):
        daily = aggregate_transit(tagged_transit, ["Home", "School"], flags="any")

        assert daily.loc[0, "transit_count"] == 3
        assert bool(daily.loc[0, "Home"]) is True
        assert bool(daily.loc[0, "School"]) is True

    def test_majority_flags(self, tagged_transit):
        daily = aggregate_transit(tagged_transit, ["Home", "School"], flags="majority")

        assert bool(daily.loc[0, "Home"]) is False
        assert bool(daily.loc[0, "School"]) is True
        assert daily["Home"].dtype == bool


class TestFoodTotals:
    """Sign normalization and essential / non-essential split"""

    @pytest.fixture
    def expenses(self):
        return pd.DataFrame({
            "date": pd.to_datetime(["2021-09-03"] * 4 + ["2021-09-04"]),
            "amount": [-12.5, -3.2, -40.0, -1.3, 12.5],
            "category_broad": ["Food", "food", "Transport", "Food", "Food"],
            "category_specific": ["Groceries", "Restaurant", "Train", None, "Groceries"],
            "location": [None] * 5,
        })

    def test_build_food_columns(self, expenses):
        food = build_food_columns(expenses, "Food", ["Groceries"])

        assert food["essential_food_total"].tolist() == pytest.approx([12.5, 0, 0, 0, 12.5])
        assert food["nonessential_food_total"].tolist() == pytest.approx([0, 3.2, 0, 1.3, 0])

    def test_totals_never_negative(self, expenses):
        food = build_food_columns(expenses, "Food", ["Groceries"])

        assert (food["essential_food_total"] >= 0).all()
        assert (food["nonessential_food_total"] >= 0).all()

    def test_debit_and_unsigned_amounts_both_count_as_spending(self):
        # exports without a sign report spending as positive values
        expenses = pd.DataFrame({
            "date": pd.to_datetime(["2021-09-05", "2021-09-05"]),
            "amount": [-8.0, 8.0],
            "category_broad": ["Food", "Food"],
            "category_specific": ["Groceries", "Bakery"],
            "location": [None, None],
        })

        food = build_food_columns(expenses, "Food", ["Groceries"])

        assert food["essential_food_total"].tolist() == pytest.approx([8.0, 0.0])
        assert food["nonessential_food_total"].tolist() == pytest.approx([0.0, 8.0])

    def test_aggregate_expenses(self, expenses):
        expenses = expenses.assign(Home=[True, False, False, False, False])

        daily = aggregate_expenses(
            expenses, ["Home"], food_category="Food", essential_categories=["Groceries"]
        )

        assert daily["date"].tolist() == list(pd.to_datetime(["2021-09-03", "2021-09-04"]))
        assert daily["essential_food_total"].tolist() == pytest.approx([12.5, 12.5])
        assert daily["nonessential_food_total"].tolist() == pytest.approx([4.5, 0.0])
        assert daily["Home"].tolist() == [True, False]


class TestStepAggregation:
    def test_duplicate_step_rows_summed(self):
        steps = pd.DataFrame({
            "date": pd.to_datetime(["2021-09-01", "2021-09-01", "2021-09-02"]),
            "step_count": [100, 50, 7],
        })

        daily = aggregate_steps(steps)

        assert daily["step_count"].tolist() == [150, 7]
        assert daily["step_count"].dtype == "int64"
