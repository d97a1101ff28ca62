from __future__ import annotations

import random

import pytest

from floodaudit.reports import (
    annual_type_trends,
    contractor_ranking,
    normalize_scores,
    raw_efficiency,
    regional_efficiency,
    reliability_index,
    summarize,
    yoy_change,
)


def _random_records(record_factory, seed: int, count: int = 300):
    rng = random.Random(seed)
    regions = [("Region I", "Luzon"), ("Region VII", "Visayas"), ("Region XI", "Mindanao"), ("NCR", "Luzon")]
    records = []
    for _ in range(count):
        region, island = rng.choice(regions)
        budget = rng.uniform(100_000, 5_000_000)
        cost = budget * rng.uniform(0.8, 1.2)
        records.append(
            record_factory(
                region=region,
                main_island=island,
                province=rng.choice(["Cebu", "Bohol", "Davao", "Unknown"]),
                funding_year=rng.choice([2021, 2022, 2023]),
                type_of_work=rng.choice(["Drainage", "Seawall", "Dike", "Revetment"]),
                contractor=f"Contractor {rng.randint(1, 30)}",
                approved_budget=budget,
                contract_cost=cost,
                completion_delay_days=float(rng.randint(-10, 200)),
            )
        )
    return records


def test_raw_efficiency_guards():
    assert raw_efficiency(1000.0, 10.0) == 100.0
    assert raw_efficiency(1000.0, 0.0) == 0.0
    assert raw_efficiency(1000.0, -5.0) == 0.0
    assert raw_efficiency(-1000.0, 10.0) == 0.0


def test_normalize_scores_flat_range_scores_zero():
    assert normalize_scores([5.0, 5.0, 5.0]) == [0.0, 0.0, 0.0]
    assert normalize_scores([0.0, 50.0, 200.0]) == [0.0, 25.0, 100.0]
    assert normalize_scores([]) == []


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_efficiency_scores_within_bounds_and_best_is_100(record_factory, seed):
    records = _random_records(record_factory, seed)
    rows = regional_efficiency(records)
    scores = [float(row.efficiency_score) for row in rows]

    assert all(0.0 <= s <= 100.0 for s in scores)
    assert scores == sorted(scores, reverse=True)
    if len(set(scores)) > 1:
        assert scores[0] == pytest.approx(100.0)


def test_regional_efficiency_group_metrics(record_factory):
    records = [
        record_factory(region="R1", main_island="Luzon", approved_budget=100.0, contract_cost=80.0, completion_delay_days=10.0),
        record_factory(region="R1", main_island="Luzon", approved_budget=100.0, contract_cost=60.0, completion_delay_days=50.0),
        record_factory(region="R1", main_island="Luzon", approved_budget=100.0, contract_cost=90.0, completion_delay_days=30.0),
        record_factory(region="R2", main_island="Visayas", approved_budget=100.0, contract_cost=99.0, completion_delay_days=0.0),
    ]
    rows = {row.region: row for row in regional_efficiency(records)}

    r1 = rows["R1"]
    assert r1.total_budget == "300.00"
    assert r1.median_savings == "20.00"
    assert r1.avg_delay == "30.00"
    assert r1.high_delay_pct == "33.33"
    assert r1.efficiency_score == "100.00"
    # Zero average delay yields zero raw efficiency rather than a division error.
    assert rows["R2"].efficiency_score == "0.00"


def test_regional_ties_sorted_by_region(record_factory):
    records = [record_factory(region=name, main_island="Luzon") for name in ("Region III", "Region I", "Region II")]
    rows = regional_efficiency(records)

    assert [row.region for row in rows] == ["Region I", "Region II", "Region III"]
    assert {row.efficiency_score for row in rows} == {"0.00"}


def test_reliability_index_caps_upper_bound_only():
    assert reliability_index(0.0, 5_000.0, 1_000.0) == 100.0
    assert reliability_index(45.0, 100.0, 1_000.0) == pytest.approx(5.0)
    assert reliability_index(180.0, 100.0, 1_000.0) == pytest.approx(-10.0)
    assert reliability_index(10.0, -100.0, 1_000.0) < 0
    assert reliability_index(10.0, 100.0, 0.0) == 0.0


@pytest.mark.parametrize("seed", [3, 11])
def test_contractor_ranking_properties(record_factory, seed):
    records = _random_records(record_factory, seed, count=400)
    rows = contractor_ranking(records)
    counts = {}
    for record in records:
        counts[record.contractor] = counts.get(record.contractor, 0) + 1

    assert 0 < len(rows) <= 15
    assert [row.rank for row in rows] == list(range(1, len(rows) + 1))
    costs = [float(row.total_cost) for row in rows]
    assert costs == sorted(costs, reverse=True)
    for row in rows:
        assert row.num_projects >= 5
        assert counts[row.contractor] == row.num_projects
        assert float(row.reliability_index) <= 100.0
        assert (row.risk_flag == "High Risk") == (float(row.reliability_index) < 50)


def test_contractor_ranking_filters_small_contractors(record_factory):
    records = [record_factory(contractor="Big", contract_cost=500.0, approved_budget=1_000.0, completion_delay_days=0.0)] * 5
    records += [record_factory(contractor="Small", contract_cost=10_000.0, approved_budget=20_000.0)] * 4
    rows = contractor_ranking(records)

    assert [row.contractor for row in rows] == ["Big"]
    big = rows[0]
    assert big.total_cost == "2500.00"
    assert big.total_savings == "2500.00"
    assert big.reliability_index == "100.00"
    assert big.risk_flag == "OK"


def test_contractor_ranking_keeps_negative_reliability(record_factory):
    records = [
        record_factory(contractor="Late", approved_budget=900.0, contract_cost=1_000.0, completion_delay_days=120.0)
    ] * 5
    (row,) = contractor_ranking(records)

    # (1 - 120/90) * (-500/5000) * 100 = 3.33: two negative factors
    assert row.reliability_index == "3.33"
    assert row.risk_flag == "High Risk"

    records = [
        record_factory(contractor="Overrun", approved_budget=900.0, contract_cost=1_000.0, completion_delay_days=30.0)
    ] * 5
    (row,) = contractor_ranking(records)
    assert float(row.reliability_index) < 0
    assert row.risk_flag == "High Risk"


def test_contractor_ranking_truncates_to_top_n(record_factory):
    records = []
    for idx in range(20):
        records += [record_factory(contractor=f"C{idx:02d}", contract_cost=1_000.0 + idx, approved_budget=2_000.0)] * 5
    rows = contractor_ranking(records)

    assert len(rows) == 15
    assert rows[0].contractor == "C19"
    assert rows[-1].contractor == "C05"
    assert len(contractor_ranking(records, top_n=3)) == 3


def test_yoy_change_zero_baseline():
    assert yoy_change(100.0, 0.0) == 0.0
    assert yoy_change(150.0, 100.0) == 50.0
    assert yoy_change(-50.0, -100.0) == 50.0


def test_annual_trends_baseline_rules(record_factory):
    records = [
        record_factory(funding_year=2021, type_of_work="Drainage", approved_budget=200.0, contract_cost=100.0),
        record_factory(funding_year=2022, type_of_work="Drainage", approved_budget=250.0, contract_cost=100.0),
        record_factory(funding_year=2022, type_of_work="Drainage", approved_budget=100.0, contract_cost=150.0),
        record_factory(funding_year=2022, type_of_work="Pumping Station", approved_budget=300.0, contract_cost=100.0),
        record_factory(funding_year=2023, type_of_work="Pumping Station", approved_budget=100.0, contract_cost=50.0),
    ]
    rows = annual_type_trends(records)
    keyed = {(row.funding_year, row.type_of_work): row for row in rows}

    assert keyed[(2021, "Drainage")].yoy_change == "0.00"
    drainage_2022 = keyed[(2022, "Drainage")]
    assert drainage_2022.total_projects == 2
    assert drainage_2022.avg_savings == "50.00"
    assert drainage_2022.overrun_rate == "50.00"
    assert drainage_2022.yoy_change == "-50.00"
    # No 2021 projects for this type, so there is no baseline.
    assert keyed[(2022, "Pumping Station")].yoy_change == "0.00"
    assert keyed[(2023, "Pumping Station")].yoy_change == "0.00"

    assert [(row.funding_year, row.type_of_work) for row in rows] == [
        (2021, "Drainage"),
        (2022, "Pumping Station"),
        (2022, "Drainage"),
        (2023, "Pumping Station"),
    ]


def test_summary_counts_qualifying_contractors(record_factory):
    records = [record_factory(contractor="A", province="Cebu", completion_delay_days=10.0)] * 5
    records += [record_factory(contractor="B", province="Unknown", completion_delay_days=40.0)] * 5
    records += [record_factory(contractor="C", province="Cebu")]
    contractor_rows = contractor_ranking(records, top_n=1)
    summary = summarize(records, contractor_rows=contractor_rows)

    assert summary.total_projects == 11
    assert summary.total_contractors == 2
    assert summary.report2_contractors == 1
    assert summary.total_provinces == 2
    assert summary.global_avg_delay_days == pytest.approx(260.0 / 11)
    assert summary.total_savings == pytest.approx(11 * 100_000.0)
