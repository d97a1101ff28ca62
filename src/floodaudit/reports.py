"""
Report generators over cleaned project records.

1. Regional flood mitigation efficiency, grouped by (Region, MainIsland).
2. Contractor performance ranking, grouped by Contractor.
3. Annual project type cost overrun trends, grouped by (FundingYear, TypeOfWork).
4. Dataset-wide summary statistics.

Every generator is a read-only pass over the records it is given.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .aggregation import count_groups, group_by
from .models import (
    CleanRecord,
    ContractorRankingRow,
    RegionSummaryRow,
    ReportBundle,
    SummaryStats,
    TypeTrendRow,
)
from .stats import average, clamp, finite_or_zero, format_fixed, fsum, is_near_zero, median, percentage

HIGH_DELAY_DAYS = 30.0
MIN_CONTRACTOR_PROJECTS = 5
TOP_CONTRACTORS = 15
DELAY_NORM_DAYS = 90.0
RISK_THRESHOLD = 50.0
BASELINE_YEAR = 2021

HIGH_RISK = "High Risk"
OK = "OK"


@dataclass(frozen=True)
class _RegionAggregate:
    region: str
    main_island: str
    total_budget: float
    median_savings: float
    avg_delay: float
    high_delay_pct: float
    raw_efficiency: float


def raw_efficiency(median_savings: float, avg_delay: float) -> float:
    """Median savings per day of average delay, floored at zero."""

    if avg_delay <= 0:
        return 0.0
    value = finite_or_zero(median_savings / avg_delay)
    return value if value >= 0 else 0.0


def normalize_scores(values: Sequence[float]) -> List[float]:
    """Min-max scale ``values`` onto 0-100; a flat range scores everything 0."""

    if not values:
        return []
    low = finite_or_zero(min(values))
    high = finite_or_zero(max(values))
    span = high - low
    if is_near_zero(span):
        return [0.0 for _ in values]
    return [clamp(finite_or_zero((value - low) / span * 100.0), 0.0, 100.0) for value in values]


def regional_efficiency(
    records: Sequence[CleanRecord],
    high_delay_days: float = HIGH_DELAY_DAYS,
) -> List[RegionSummaryRow]:
    """Generate Report 1 sorted by efficiency score, best region first."""

    def _reduce(key: Tuple[str, str], members: List[CleanRecord]) -> _RegionAggregate:
        delays = [r.completion_delay_days for r in members]
        avg_delay = average(delays)
        median_savings = median([r.cost_savings for r in members])
        return _RegionAggregate(
            region=key[0],
            main_island=key[1],
            total_budget=fsum(r.approved_budget for r in members),
            median_savings=median_savings,
            avg_delay=avg_delay,
            high_delay_pct=percentage(sum(1 for d in delays if d > high_delay_days), len(delays)),
            raw_efficiency=raw_efficiency(median_savings, avg_delay),
        )

    groups = list(group_by(records, lambda r: (r.region, r.main_island), _reduce).values())
    scores = normalize_scores([g.raw_efficiency for g in groups])
    ranked = sorted(zip(scores, groups), key=lambda pair: (-pair[0], pair[1].region, pair[1].main_island))

    return [
        RegionSummaryRow(
            region=group.region,
            main_island=group.main_island,
            total_budget=format_fixed(group.total_budget),
            median_savings=format_fixed(group.median_savings),
            avg_delay=format_fixed(group.avg_delay),
            high_delay_pct=format_fixed(group.high_delay_pct),
            efficiency_score=format_fixed(score),
        )
        for score, group in ranked
    ]


@dataclass(frozen=True)
class _ContractorAggregate:
    contractor: str
    num_projects: int
    total_cost: float
    avg_delay: float
    total_savings: float


def reliability_index(
    avg_delay: float,
    total_savings: float,
    total_cost: float,
    delay_norm_days: float = DELAY_NORM_DAYS,
) -> float:
    """
    Score delay performance against ``delay_norm_days`` and savings against cost.

    The result is capped at 100 but has no floor: long delays or overruns
    push it negative.  Undefined ratios score 0.
    """

    if is_near_zero(total_cost) or is_near_zero(delay_norm_days):
        return 0.0
    value = finite_or_zero((1.0 - avg_delay / delay_norm_days) * (total_savings / total_cost) * 100.0)
    return min(value, 100.0)


def contractor_ranking(
    records: Sequence[CleanRecord],
    min_projects: int = MIN_CONTRACTOR_PROJECTS,
    top_n: int = TOP_CONTRACTORS,
    delay_norm_days: float = DELAY_NORM_DAYS,
    risk_threshold: float = RISK_THRESHOLD,
) -> List[ContractorRankingRow]:
    """Generate Report 2: the ``top_n`` contractors by total contract cost."""

    def _reduce(contractor: str, members: List[CleanRecord]) -> _ContractorAggregate:
        return _ContractorAggregate(
            contractor=contractor,
            num_projects=len(members),
            total_cost=fsum(r.contract_cost for r in members),
            avg_delay=average([r.completion_delay_days for r in members]),
            total_savings=fsum(r.cost_savings for r in members),
        )

    qualifying = [
        agg
        for agg in group_by(records, lambda r: r.contractor, _reduce).values()
        if agg.num_projects >= min_projects
    ]
    qualifying.sort(key=lambda agg: (-agg.total_cost, agg.contractor))

    rows: List[ContractorRankingRow] = []
    for rank, agg in enumerate(qualifying[: max(top_n, 0)], start=1):
        reliability = reliability_index(agg.avg_delay, agg.total_savings, agg.total_cost, delay_norm_days)
        rows.append(
            ContractorRankingRow(
                rank=rank,
                contractor=agg.contractor,
                total_cost=format_fixed(agg.total_cost),
                num_projects=agg.num_projects,
                avg_delay=format_fixed(agg.avg_delay),
                total_savings=format_fixed(agg.total_savings),
                reliability_index=format_fixed(reliability),
                risk_flag=HIGH_RISK if reliability < risk_threshold else OK,
            )
        )
    return rows


@dataclass(frozen=True)
class _TrendAggregate:
    funding_year: int
    type_of_work: str
    total_projects: int
    avg_savings: float
    overrun_rate: float


def yoy_change(avg_savings: float, baseline: float) -> float:
    if is_near_zero(baseline):
        return 0.0
    return finite_or_zero((avg_savings - baseline) / abs(baseline) * 100.0)


def annual_type_trends(
    records: Sequence[CleanRecord],
    baseline_year: int = BASELINE_YEAR,
) -> List[TypeTrendRow]:
    """
    Generate Report 3.

    Each work type's year-over-year change is measured against that type's
    average savings in ``baseline_year``.  Baseline-year rows, and types with
    no baseline-year projects, report a change of 0.
    """

    def _reduce(key: Tuple[int, str], members: List[CleanRecord]) -> _TrendAggregate:
        savings = [r.cost_savings for r in members]
        return _TrendAggregate(
            funding_year=key[0],
            type_of_work=key[1],
            total_projects=len(members),
            avg_savings=average(savings),
            overrun_rate=percentage(sum(1 for s in savings if s < 0), len(savings)),
        )

    groups = list(group_by(records, lambda r: (r.funding_year, r.type_of_work), _reduce).values())
    baselines = {g.type_of_work: g.avg_savings for g in groups if g.funding_year == baseline_year}
    groups.sort(key=lambda g: (g.funding_year, -g.avg_savings, g.type_of_work))

    rows: List[TypeTrendRow] = []
    for group in groups:
        if group.funding_year == baseline_year:
            change = 0.0
        else:
            change = yoy_change(group.avg_savings, baselines.get(group.type_of_work, 0.0))
        rows.append(
            TypeTrendRow(
                funding_year=group.funding_year,
                type_of_work=group.type_of_work,
                total_projects=group.total_projects,
                avg_savings=format_fixed(group.avg_savings),
                overrun_rate=format_fixed(group.overrun_rate),
                yoy_change=format_fixed(change),
            )
        )
    return rows


def summarize(
    records: Sequence[CleanRecord],
    region_rows: Sequence[RegionSummaryRow] = (),
    contractor_rows: Sequence[ContractorRankingRow] = (),
    trend_rows: Sequence[TypeTrendRow] = (),
    min_projects: int = MIN_CONTRACTOR_PROJECTS,
) -> SummaryStats:
    """Dataset-wide totals plus the row count of each report."""

    return SummaryStats(
        total_projects=len(records),
        total_contractors=count_groups(records, lambda r: r.contractor, min_projects),
        total_provinces=len({r.province for r in records}),
        global_avg_delay_days=average([r.completion_delay_days for r in records]),
        total_savings=fsum(r.cost_savings for r in records),
        report1_regions=len(region_rows),
        report2_contractors=len(contractor_rows),
        report3_entries=len(trend_rows),
    )


def generate_all(
    records: Sequence[CleanRecord],
    *,
    high_delay_days: float = HIGH_DELAY_DAYS,
    min_projects: int = MIN_CONTRACTOR_PROJECTS,
    top_n: int = TOP_CONTRACTORS,
    delay_norm_days: float = DELAY_NORM_DAYS,
    risk_threshold: float = RISK_THRESHOLD,
) -> ReportBundle:
    regional = regional_efficiency(records, high_delay_days=high_delay_days)
    contractors = contractor_ranking(
        records,
        min_projects=min_projects,
        top_n=top_n,
        delay_norm_days=delay_norm_days,
        risk_threshold=risk_threshold,
    )
    trends = annual_type_trends(records)
    summary = summarize(records, regional, contractors, trends, min_projects=min_projects)
    return ReportBundle(regional=regional, contractors=contractors, trends=trends, summary=summary)
