"""Unit tests for breakdowns, trend series and pivots."""
import math

import pandas as pd
import pytest

from ticketpulse.analytics.breakdowns import (
    add_pivot_totals,
    all_breakdowns,
    breakdown_by,
    build_category_pivot,
    build_cluster_pivot,
    calculate_breakdown,
    category_trends,
    monthly_trend,
    spans_multiple_months,
    weekly_trend,
)
from ticketpulse.standards.schemas import TicketRecord, TrendPoint


def _t(ticket_id, day="2025-01-01", **kwargs):
    return TicketRecord(ticket_id=ticket_id, request_time=f"{day}T09:00:00.000Z", **kwargs)


def test_percentages_sum_to_100():
    records = [_t("1", status="Open"), _t("2", status="Closed"), _t("3"), _t("4", status="Open")]
    result = breakdown_by(records, "status")
    assert math.isclose(sum(b.percentage for b in result), 100.0)
    assert [(b.category, b.count) for b in result] == [("Open", 2), ("Closed", 1), ("Unknown", 1)]


def test_ties_keep_first_occurrence_order():
    records = [_t("1", cluster="B"), _t("2", cluster="A"), _t("3", cluster="C"), _t("4", cluster="A")]
    result = breakdown_by(records, "cluster")
    assert [b.category for b in result] == ["A", "B", "C"]


def test_priority_uses_fixed_order():
    records = [_t("1"), _t("2", priority="P3"), _t("3", priority="P1"), _t("4", priority="P3")]
    result = breakdown_by(records, "priority")
    assert [b.category for b in result] == ["P1", "P3", "Unassigned"]


def test_top_n_truncates_but_keeps_full_denominator():
    records = [_t(str(i), affiliate=f"AFF{i % 20}") for i in range(40)]
    result = breakdown_by(records, "affiliate")
    assert len(result) == 15
    assert result[0].percentage == pytest.approx(5.0)
    assert len(breakdown_by(records, "affiliate", top_n=3)) == 3


def test_default_labels_per_dimension():
    records = [_t("1")]
    out = all_breakdowns(records)
    assert out["category"][0].category == "Uncategorized"
    assert out["cluster"][0].category == "Unassigned"
    assert out["record_type"][0].category == "Unknown"
    assert out["initiator"][0].category == "Unknown"


def test_empty_input_and_unknown_dimension():
    assert calculate_breakdown([], "status") == []
    with pytest.raises(ValueError):
        breakdown_by([_t("1")], "colour")


def test_calculate_breakdown_accepts_callables():
    records = [_t("1", title="VPN down"), _t("2", title="vpn slow"), _t("3", title="Printer")]
    result = calculate_breakdown(records, lambda r: "VPN" if "vpn" in (r.title or "").lower() else None, "Other")
    assert [(b.category, b.count) for b in result] == [("VPN", 2), ("Other", 1)]


def test_weekly_trend_orders_by_week_number():
    records = [_t("1", week_label="Week 10"), _t("2", week_label="Week 2"), _t("3", week_label="Week 2"), _t("4")]
    assert weekly_trend(records) == [TrendPoint("Week 2", 2), TrendPoint("Week 10", 1)]


def test_monthly_trend_is_chronological_with_labels():
    records = [_t("1", "2025-02-03"), _t("2", "2024-12-30"), _t("3", "2025-02-20"), _t("4", "2025-01-15")]
    assert monthly_trend(records) == [
        TrendPoint("Dec 2024", 1),
        TrendPoint("Jan 2025", 1),
        TrendPoint("Feb 2025", 2),
    ]
    assert spans_multiple_months(records)
    assert not spans_multiple_months(records[:1])
    assert monthly_trend([]) == []


def test_category_pivot_normalizes_groups_and_orders():
    records = [
        _t("1", sub_category="Smart Teller", third_lvl_category="Core bank error", week_label="Week 1"),
        _t("2", sub_category="Smart Teller", third_lvl_category="core BANKING error!", week_label="Week 2"),
        _t("3", sub_category="Smart Teller", third_lvl_category="Printer", week_label="Week 2"),
        _t("4", sub_category="Smart Teller", third_lvl_category="aardvark", week_label="Week 1"),
        _t("5", sub_category="Smart Teller", week_label="Week 1"),
        _t("6", sub_category="IBPS", third_lvl_category="Printer", week_label="Week 1"),
    ]
    pivot = build_category_pivot(records, "smart_teller")
    assert list(pivot.columns) == ["Week 1", "Week 2"]
    assert list(pivot.index) == ["Core Banking Error", "aardvark", "Printer", "Unassigned"]
    assert pivot.loc["Core Banking Error"].tolist() == [1, 1]
    assert pivot.loc["Printer"].tolist() == [0, 1]


def test_category_pivot_groups_case_insensitively():
    records = [
        _t("1", category="Cards Services", third_lvl_category="Pin reset", week_label="Week 1"),
        _t("2", category="Cards Services", third_lvl_category="PIN RESET", week_label="Week 1"),
    ]
    pivot = build_category_pivot(records, "cards")
    assert list(pivot.index) == ["Pin reset"]
    assert pivot.loc["Pin reset", "Week 1"] == 2


def test_add_pivot_totals():
    pivot = pd.DataFrame({"Week 1": [1, 2], "Week 2": [3, 0]}, index=["A", "B"])
    out = add_pivot_totals(pivot)
    assert out.loc["A", "Total"] == 4
    assert out.loc["TOTAL"].tolist() == [3, 3, 6]


def test_cluster_pivot_with_and_without_category():
    records = [
        _t("1", cluster="North", third_lvl_category="Account Maintenance"),
        _t("2", cluster=" ", third_lvl_category="Account Maintenance"),
        _t("3", cluster="East", third_lvl_category="Cheque Book"),
        _t("4", cluster="North"),
    ]
    all_clusters = build_cluster_pivot(records)
    assert list(all_clusters.index) == ["Blank", "East", "North"]
    assert all_clusters["Tickets"].tolist() == [1, 1, 2]

    maintenance = build_cluster_pivot(records, category="Account Maintenance")
    assert list(maintenance.columns) == ["Account Maintenance"]
    assert maintenance.to_dict()["Account Maintenance"] == {"Blank": 1, "North": 1}


def test_category_trends_counts_highlighted_categories_per_month():
    records = [
        _t("1", "2025-01-05", sub_category="Flexcube", third_lvl_category="Account maintenance - KYC"),
        _t("2", "2025-02-05", sub_category="Flexcube", third_lvl_category="Cheque book issue"),
        _t("3", "2025-02-06", sub_category="Flexcube", third_lvl_category="Account Maintenance"),
        _t("4", "2025-02-07", sub_category="Flexcube", third_lvl_category="Not highlighted"),
        _t("5", "2025-02-07", sub_category="IBPS", third_lvl_category="Account Maintenance"),
    ]
    table = category_trends(records, "flexcube")
    assert list(table.index) == ["Jan 2025", "Feb 2025"]
    assert list(table.columns) == ["Account Maintenance", "Cheque Book", "Account Closure", "Account Class Transfer"]
    assert table["Account Maintenance"].tolist() == [1, 1]
    assert table["Cheque Book"].tolist() == [0, 1]
    assert table["Account Closure"].tolist() == [0, 0]
