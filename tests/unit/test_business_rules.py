from datetime import date
from decimal import Decimal

import pytest

from atacado.services import business_rules as rules

# 2024-06-01 is a Saturday, 2024-06-03 a Monday and 2024-06-07 a Friday.


class TestBusinessHours:
    def test_open_weekday_morning(self, at):
        assert rules.check_business_hours(at(2024, 6, 3, 9))["is_open"] is True

    def test_lunch_break(self, at):
        result = rules.check_business_hours(at(2024, 6, 3, 12, 30))
        assert result["is_open"] is False
        assert result["next_opening"] == "Hoje às 14:00"

    def test_before_opening(self, at):
        result = rules.check_business_hours(at(2024, 6, 3, 7, 59))
        assert result == {"is_open": False, "message": "Loja ainda não abriu", "next_opening": "Hoje às 08:00"}

    def test_friday_evening_reopens_saturday(self, at):
        result = rules.check_business_hours(at(2024, 6, 7, 19))
        assert result["is_open"] is False
        assert result["next_opening"] == "Sábado às 08:00"

    def test_saturday_afternoon_closed(self, at):
        result = rules.check_business_hours(at(2024, 6, 1, 13))
        assert result["is_open"] is False
        assert result["next_opening"] == "Segunda-feira às 08:00"

    def test_sunday_closed(self, at):
        result = rules.check_business_hours(at(2024, 6, 2, 10))
        assert result["is_open"] is False
        assert "domingos" in result["message"]


class TestGurupiDelivery:
    def test_before_cutoff_delivers_today(self, at):
        info = rules.check_gurupi_delivery(at(2024, 6, 3, 14, 59))
        assert info["can_deliver"] is True
        assert info["estimated_delivery"] == "Hoje entre 16:00 e 18:00"
        assert info["warnings"] == []

    def test_friday_after_cutoff_goes_to_monday(self, at):
        info = rules.check_gurupi_delivery(at(2024, 6, 7, 15))
        assert info["estimated_delivery"] == "Segunda-feira"
        assert info["warnings"]

    def test_no_saturday_delivery(self, at):
        assert rules.check_gurupi_delivery(at(2024, 6, 1, 9))["can_deliver"] is False


class TestFees:
    @pytest.mark.parametrize("total,fee", [("99.99", "10.00"), ("100.00", "0.00"), ("250", "0.00")])
    def test_gurupi_fee(self, total, fee):
        assert rules.calculate_gurupi_delivery_fee(Decimal(total)) == Decimal(fee)

    @pytest.mark.parametrize("packages,fee", [(1, "50.00"), (50, "50.00"), (51, "0.00")])
    def test_outside_fee(self, packages, fee):
        assert rules.calculate_outside_delivery_fee(packages) == Decimal(fee)

    def test_pickup_is_free(self):
        assert rules.delivery_fee_for("pickup", Decimal("10"), 1) == Decimal("0.00")

    def test_outside_info_mentions_free_shipping(self):
        info = rules.get_outside_delivery_info(60)
        assert info["free"] is True
        assert info["message"].endswith("grátis")


class TestOrderSummary:
    def test_gurupi_summary_fee_and_proceed(self, at):
        summary = rules.get_order_rules_summary("delivery_gurupi", Decimal("80"), 3, at(2024, 6, 3, 10))
        assert summary["can_proceed"] is True
        assert summary["total_fee"] == 10.0
        assert summary["delivery_info"]["delivery_fee"] == 10.0
        assert summary["pickup_info"] is None

    def test_closed_store_adds_hours_warning(self, at):
        summary = rules.get_order_rules_summary("pickup", 0, 1, at(2024, 6, 2, 10))
        assert summary["business_hours"]["is_open"] is False
        assert any("horário de funcionamento" in w for w in summary["warnings"])
        assert summary["can_proceed"] is True

    def test_unknown_delivery_type(self, at):
        with pytest.raises(rules.UnknownDeliveryType):
            rules.get_order_rules_summary("drone", 0, 1, at(2024, 6, 3, 10))


class TestCalendar:
    def test_holiday_and_sunday_not_deliverable(self):
        today = date(2024, 12, 20)
        assert rules.can_deliver_on_date(date(2024, 12, 25), today) is False
        assert rules.can_deliver_on_date(date(2024, 12, 22), today) is False
        assert rules.can_deliver_on_date(date(2024, 12, 23), today) is True

    def test_day_of_week_helpers(self, at):
        saturday, sunday, monday = date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3)
        assert [rules.is_saturday(d) for d in (saturday, sunday, monday)] == [True, False, False]
        assert [rules.is_sunday(d) for d in (saturday, sunday, monday)] == [False, True, False]
        assert [rules.is_weekday(d) for d in (saturday, sunday, monday)] == [False, False, True]
        assert rules.is_weekday(date(2024, 6, 7)) is True
        assert rules.is_saturday(at(2024, 6, 1, 23, 59)) is True
        assert rules.is_weekday(at(2024, 6, 1, 23, 59)) is False

    def test_past_date_not_deliverable(self):
        assert rules.can_deliver_on_date(date(2024, 6, 1), date(2024, 6, 3)) is False

    def test_min_delivery_date_skips_sunday_after_cutoff(self, at):
        assert rules.get_min_delivery_date(at(2024, 6, 1, 16)) == date(2024, 6, 3)

    def test_min_pickup_date_after_closing(self, at):
        assert rules.get_min_pickup_date(at(2024, 6, 3, 18, 30)) == date(2024, 6, 4)
        assert rules.get_min_pickup_date(at(2024, 6, 1, 19)) == date(2024, 6, 3)

    def test_max_date_is_thirty_days_ahead(self, at):
        assert rules.get_max_date(at(2024, 6, 3, 10)) == date(2024, 7, 3)

    def test_date_constraints_for_delivery(self, at):
        result = rules.get_date_constraints("delivery_gurupi", at(2024, 6, 3, 16))
        assert result["min_date"] == "2024-06-04"
        assert result["max_date"] == "2024-07-03"
        assert any("próximo dia útil" in w for w in result["warnings"])

    def test_pickup_warning_during_lunch(self, at):
        warnings = rules.get_pickup_warnings(None, at(2024, 6, 3, 12, 30))
        assert any("almoço" in w for w in warnings)
