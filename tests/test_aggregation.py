from __future__ import annotations

from floodaudit.aggregation import count_groups, group_by


def test_group_by_composite_key(record_factory):
    records = [
        record_factory(region="Region I", main_island="Luzon", approved_budget=100.0, contract_cost=90.0),
        record_factory(region="Region VII", main_island="Visayas", approved_budget=50.0, contract_cost=40.0),
        record_factory(region="Region I", main_island="Luzon", approved_budget=200.0, contract_cost=150.0),
    ]
    calls = []

    def _reduce(key, members):
        calls.append(key)
        return sum(m.approved_budget for m in members)

    result = group_by(records, lambda r: (r.region, r.main_island), _reduce)

    assert result == {("Region I", "Luzon"): 300.0, ("Region VII", "Visayas"): 50.0}
    assert sorted(calls) == [("Region I", "Luzon"), ("Region VII", "Visayas")]


def test_group_by_empty_input():
    assert group_by([], lambda r: r.contractor, lambda key, members: len(members)) == {}


def test_count_groups_respects_min_size(record_factory):
    records = [record_factory(contractor="A")] * 5 + [record_factory(contractor="B")] * 4
    assert count_groups(records, lambda r: r.contractor) == 2
    assert count_groups(records, lambda r: r.contractor, min_size=5) == 1
