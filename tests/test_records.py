from dataclasses import FrozenInstanceError
from datetime import date

import pytest

from domain.records import Budget, SavingGoal, SpecialDate, Transaction


class TestTransaction:
    def test_fields_are_normalized(self):
        tx = Transaction(
            date="2024-03-05",
            amount=12,
            description="  Lunch ",
            category=" Food ",
            participant="   ",
            notes="",
        )
        assert tx.date == date(2024, 3, 5)
        assert tx.amount == 12.0
        assert tx.description == "Lunch"
        assert tx.category == "Food"
        assert tx.participant is None
        assert tx.notes is None
        assert tx.is_expense is True

    def test_ids_are_unique_strings(self):
        first = Transaction(date="2024-01-01", amount=1.0)
        second = Transaction(date="2024-01-01", amount=1.0)
        assert isinstance(first.id, str)
        assert first.id != second.id

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            Transaction(date="2024-01-01", amount=-5.0)

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), "nan"])
    def test_non_finite_amount_rejected(self, amount):
        with pytest.raises(ValueError, match="finite"):
            Transaction(date="2024-01-01", amount=amount)

    def test_malformed_date_rejected(self):
        with pytest.raises(ValueError):
            Transaction(date="01/02/2024", amount=5.0)

    def test_equality_uses_id_only(self):
        tx = Transaction(date="2024-01-01", amount=10.0, category="Food")
        edited = tx.with_amount(99.0)
        other = Transaction(date="2024-01-01", amount=10.0, category="Food")
        assert edited == tx
        assert hash(edited) == hash(tx)
        assert other != tx

    def test_is_immutable(self):
        tx = Transaction(date="2024-01-01", amount=10.0)
        with pytest.raises(FrozenInstanceError):
            tx.amount = 5.0  # type: ignore[misc]

    def test_signed_amount(self):
        assert Transaction(date="2024-01-01", amount=10.0).signed_amount() == -10.0
        assert Transaction(date="2024-01-01", amount=10.0, is_expense=False).signed_amount() == 10.0


class TestBudget:
    def test_missing_category_budget_is_zero(self):
        budget = Budget(
            name="March",
            start_date="2024-03-01",
            end_date="2024-03-31",
            total_budget=1000.0,
            category_budgets={"Food": 300.0},
        )
        assert budget.category_budget("Food") == 300.0
        assert budget.category_budget("Travel") == 0.0

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            Budget(name="bad", start_date="2024-03-10", end_date="2024-03-01")

    def test_with_category_budget_copies(self):
        budget = Budget(name="March", start_date="2024-03-01", end_date="2024-03-31")
        updated = budget.with_category_budget("Food", 250)
        assert updated.category_budget("Food") == 250.0
        assert budget.category_budget("Food") == 0.0
        assert updated.covers(date(2024, 3, 31))
        assert not updated.covers(date(2024, 4, 1))


class TestSpecialDate:
    def test_affected_categories_deduplicated(self):
        special = SpecialDate(
            name="Spring Festival",
            date="2024-02-10",
            affected_categories=["Food", " Food", "", "Gift"],
            expected_impact=30,
        )
        assert special.affected_categories == ("Food", "Gift")
        assert special.expected_impact == 30.0
        assert special.affects("food")
        assert not special.affects("Housing")


class TestSavingGoal:
    def test_negative_values_clamped(self):
        goal = SavingGoal(name="Trip", target_amount=-10, monthly_contribution=-5)
        assert goal.target_amount == 0.0
        assert goal.monthly_contribution == 0.0
        assert goal.with_target_amount(-1).target_amount == 0.0
        assert goal.with_monthly_contribution(-3).monthly_contribution == 0.0

    def test_progress_clamped(self):
        assert SavingGoal(name="A", target_amount=100, current_amount=250).progress_percentage() == 100.0
        assert SavingGoal(name="A", target_amount=100, current_amount=-20).progress_percentage() == 0.0
        assert SavingGoal(name="A", target_amount=0, current_amount=20).progress_percentage() == 0.0
        assert SavingGoal(name="A", target_amount=200, current_amount=50).progress_percentage() == 25.0

    def test_remaining_and_completion(self):
        goal = SavingGoal(name="Laptop", target_amount=1000, current_amount=400)
        assert goal.remaining_amount() == 600.0
        assert not goal.is_completed()
        done = goal.with_contribution(600)
        assert done.remaining_amount() == 0.0
        assert done.is_completed()
        assert not SavingGoal(name="Empty", target_amount=0).is_completed()

    def test_contribution_window(self):
        goal = SavingGoal(
            name="Car", target_amount=5000, start_date="2024-02-01", target_date="2024-12-31"
        )
        assert not goal.accepts_contribution_on(date(2024, 1, 31))
        assert goal.accepts_contribution_on(date(2024, 2, 1))
        assert goal.accepts_contribution_on(date(2024, 12, 31))
        assert not goal.accepts_contribution_on(date(2025, 1, 1))
