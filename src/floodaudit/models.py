from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import ClassVar, Dict, List, Mapping, Optional, Tuple

# Header name -> RawFields attribute, in the order the source file lists them.
RAW_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("MainIsland", "main_island"),
    ("Region", "region"),
    ("Province", "province"),
    ("TypeOfWork", "type_of_work"),
    ("FundingYear", "funding_year"),
    ("ApprovedBudgetForContract", "approved_budget"),
    ("ContractCost", "contract_cost"),
    ("ActualCompletionDate", "actual_completion_date"),
    ("Contractor", "contractor"),
    ("StartDate", "start_date"),
    ("ProjectLatitude", "project_latitude"),
    ("ProjectLongitude", "project_longitude"),
    ("ProvincialCapitalLatitude", "capital_latitude"),
    ("ProvincialCapitalLongitude", "capital_longitude"),
)

REQUIRED_COLUMNS: Tuple[str, ...] = tuple(header for header, _ in RAW_COLUMNS)


@dataclass(frozen=True)
class RawFields:
    """Untrusted view of one input row; every cell is optional text."""

    main_island: Optional[str] = None
    region: Optional[str] = None
    province: Optional[str] = None
    type_of_work: Optional[str] = None
    funding_year: Optional[str] = None
    approved_budget: Optional[str] = None
    contract_cost: Optional[str] = None
    actual_completion_date: Optional[str] = None
    contractor: Optional[str] = None
    start_date: Optional[str] = None
    project_latitude: Optional[str] = None
    project_longitude: Optional[str] = None
    capital_latitude: Optional[str] = None
    capital_longitude: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Optional[str]]) -> "RawFields":
        """Build from a ``{header: cell}`` mapping such as a ``csv.DictReader`` row."""

        return cls(**{attr: row.get(header) for header, attr in RAW_COLUMNS})


@dataclass(frozen=True)
class CleanRecord:
    """Validated project row with derived metrics; the unit every report reads."""

    funding_year: int
    region: str
    main_island: str
    province: str
    type_of_work: str
    contractor: str
    approved_budget: float
    contract_cost: float
    cost_savings: float
    completion_delay_days: float
    lat: Optional[float] = None
    lon: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None


@dataclass(frozen=True)
class LoadReport:
    """Counters describing one load/clean pass."""

    total_rows: int = 0
    filtered_rows: int = 0
    parse_errors: int = 0
    imputed_coords: int = 0
    skipped_rows: int = 0


class _ReportRow:
    """Mixin giving report rows their output column headers."""

    columns: ClassVar[Tuple[Tuple[str, str], ...]] = ()

    @classmethod
    def headers(cls) -> List[str]:
        return [header for header, _ in cls.columns]

    def to_record(self) -> Dict[str, object]:
        return {header: getattr(self, attr) for header, attr in self.columns}


@dataclass(frozen=True)
class RegionSummaryRow(_ReportRow):
    """Report 1 row: regional flood mitigation efficiency."""

    columns: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("Region", "region"),
        ("MainIsland", "main_island"),
        ("TotalBudget", "total_budget"),
        ("MedianSavings", "median_savings"),
        ("AvgDelay", "avg_delay"),
        ("HighDelayPct", "high_delay_pct"),
        ("EfficiencyScore", "efficiency_score"),
    )

    region: str
    main_island: str
    total_budget: str
    median_savings: str
    avg_delay: str
    high_delay_pct: str
    efficiency_score: str


@dataclass(frozen=True)
class ContractorRankingRow(_ReportRow):
    """Report 2 row: top contractors by total contract cost."""

    columns: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("Rank", "rank"),
        ("Contractor", "contractor"),
        ("TotalCost", "total_cost"),
        ("NumProjects", "num_projects"),
        ("AvgDelay", "avg_delay"),
        ("TotalSavings", "total_savings"),
        ("ReliabilityIndex", "reliability_index"),
        ("RiskFlag", "risk_flag"),
    )

    rank: int
    contractor: str
    total_cost: str
    num_projects: int
    avg_delay: str
    total_savings: str
    reliability_index: str
    risk_flag: str


@dataclass(frozen=True)
class TypeTrendRow(_ReportRow):
    """Report 3 row: one (FundingYear, TypeOfWork) pair."""

    columns: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("FundingYear", "funding_year"),
        ("TypeOfWork", "type_of_work"),
        ("TotalProjects", "total_projects"),
        ("AvgSavings", "avg_savings"),
        ("OverrunRate", "overrun_rate"),
        ("YoYChange", "yoy_change"),
    )

    funding_year: int
    type_of_work: str
    total_projects: int
    avg_savings: str
    overrun_rate: str
    yoy_change: str


@dataclass(frozen=True)
class SummaryStats:
    total_projects: int
    total_contractors: int
    total_provinces: int
    global_avg_delay_days: float
    total_savings: float
    report1_regions: int = 0
    report2_contractors: int = 0
    report3_entries: int = 0

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {f.name: getattr(self, f.name) for f in fields(self)}
        data["global_avg_delay_days"] = round(self.global_avg_delay_days, 2)
        data["total_savings"] = round(self.total_savings, 2)
        return data


@dataclass(frozen=True)
class ReportBundle:
    """All report outputs produced by a single generation pass."""

    regional: List[RegionSummaryRow] = field(default_factory=list)
    contractors: List[ContractorRankingRow] = field(default_factory=list)
    trends: List[TypeTrendRow] = field(default_factory=list)
    summary: Optional[SummaryStats] = None
