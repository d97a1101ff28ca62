from __future__ import annotations

import csv
from pathlib import Path
from typing import Callable, Dict, List, Sequence

import pytest

from floodaudit.models import REQUIRED_COLUMNS, CleanRecord


def project_row(**overrides: str) -> Dict[str, str]:
    row = {
        "MainIsland": "Luzon",
        "Region": "Region I",
        "Province": "Ilocos Norte",
        "TypeOfWork": "Construction of Flood Mitigation Structure",
        "FundingYear": "2022",
        "ApprovedBudgetForContract": "1,000,000.00",
        "ContractCost": "900,000.00",
        "ActualCompletionDate": "2022-02-10",
        "Contractor": "ACME BUILDERS",
        "StartDate": "2022-01-01",
        "ProjectLatitude": "18.19",
        "ProjectLongitude": "120.59",
        "ProvincialCapitalLatitude": "18.20",
        "ProvincialCapitalLongitude": "120.60",
    }
    row.update(overrides)
    return row


@pytest.fixture
def csv_factory(tmp_path: Path) -> Callable[..., Path]:
    def _create(rows: Sequence[Dict[str, str]], filename: str = "projects.csv", header: Sequence[str] = REQUIRED_COLUMNS) -> Path:
        path = tmp_path / filename
        with path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=list(header), extrasaction="ignore")
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
        return path

    return _create


@pytest.fixture
def record_factory() -> Callable[..., CleanRecord]:
    def _create(**overrides) -> CleanRecord:
        values = {
            "funding_year": 2022,
            "region": "Region I",
            "main_island": "Luzon",
            "province": "Ilocos Norte",
            "type_of_work": "Drainage",
            "contractor": "ACME BUILDERS",
            "approved_budget": 1_000_000.0,
            "contract_cost": 900_000.0,
            "completion_delay_days": 10.0,
        }
        values.update(overrides)
        values.setdefault("cost_savings", values["approved_budget"] - values["contract_cost"])
        return CleanRecord(**values)

    return _create


def sample_rows() -> List[Dict[str, str]]:
    """Six projects, two per region, spanning 2021-2023 (see test_end_to_end)."""

    return [
        project_row(Region="Region I", MainIsland="Luzon", Province="Ilocos Norte", TypeOfWork="Drainage",
                    FundingYear="2021", ApprovedBudgetForContract="1,000,000", ContractCost="900,000",
                    StartDate="2021-01-01", ActualCompletionDate="2021-01-11"),
        project_row(Region="Region I", MainIsland="Luzon", Province="Ilocos Norte", TypeOfWork="Seawall",
                    FundingYear="2022", ApprovedBudgetForContract="2,000,000", ContractCost="1,800,000",
                    StartDate="2022-01-01", ActualCompletionDate="2022-01-21"),
        project_row(Region="Region VII", MainIsland="Visayas", Province="Cebu", TypeOfWork="Drainage",
                    FundingYear="2022", ApprovedBudgetForContract="500,000", ContractCost="450,000",
                    StartDate="2022-03-01", ActualCompletionDate="2022-04-10"),
        project_row(Region="Region VII", MainIsland="Visayas", Province="Cebu", TypeOfWork="Seawall",
                    FundingYear="2021", ApprovedBudgetForContract="800,000", ContractCost="700,000",
                    StartDate="2021-05-01", ActualCompletionDate="2021-05-21"),
        project_row(Region="Region XI", MainIsland="Mindanao", Province="Davao del Sur", TypeOfWork="Drainage",
                    FundingYear="2023", ApprovedBudgetForContract="1,200,000", ContractCost="1,300,000",
                    StartDate="2023-02-01", ActualCompletionDate="2023-03-03"),
        project_row(Region="Region XI", MainIsland="Mindanao", Province="Davao del Sur", TypeOfWork="Seawall",
                    FundingYear="2023", ApprovedBudgetForContract="600,000", ContractCost="500,000",
                    StartDate="2023-06-01", ActualCompletionDate="2023-06-11"),
    ]


@pytest.fixture
def row_factory() -> Callable[..., Dict[str, str]]:
    return project_row


@pytest.fixture
def sample_csv(csv_factory) -> Path:
    return csv_factory(sample_rows())
