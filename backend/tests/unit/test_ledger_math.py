"""Points accrual and cap arithmetic."""

import pytest

from pawledger.services.ledger_service import cap_points, card_spend_points, wallet_spend_points


class TestCapPoints:
    def test_accrual_below_cap_is_untouched(self):
        award = cap_points(100, 50, 500)

        assert award.points_awarded == 50
        assert award.points_capped == 0
        assert award.new_balance == 150

    def test_excess_is_dropped_at_the_cap(self):
        award = cap_points(480, 50, 500)

        assert award.points_awarded == 20
        assert award.points_capped == 30
        assert award.new_balance == 500

    def test_balance_already_over_cap_is_left_alone(self):
        award = cap_points(520, 10, 500)

        assert award.points_awarded == 0
        assert award.points_capped == 10
        assert award.new_balance == 520

    @pytest.mark.parametrize("points", [0, -5])
    def test_non_positive_accrual_is_a_no_op(self, points):
        award = cap_points(40, points, 500)

        assert award.points_awarded == 0
        assert award.points_capped == 0
        assert award.new_balance == 40


class TestSpendPoints:
    def test_wallet_spend_earns_two_points_per_whole_dollar(self):
        assert wallet_spend_points(4250, is_grooming=False) == 84

    def test_wallet_spend_on_grooming_gets_the_bonus(self):
        assert wallet_spend_points(4250, is_grooming=True) == 126

    def test_card_spend_earns_one_point_per_whole_dollar(self):
        assert card_spend_points(4299, is_grooming=False) == 42

    def test_card_spend_on_grooming_rounds_down(self):
        assert card_spend_points(4299, is_grooming=True) == 63

    def test_under_a_dollar_earns_nothing(self):
        assert card_spend_points(99, is_grooming=True) == 0
        assert wallet_spend_points(99, is_grooming=False) == 0
