"""Cleaning and reporting toolkit for DPWH flood control project exports."""

from .dataset import DatasetHandle
from .loader import load_and_clean
from .reports import (
    annual_type_trends,
    contractor_ranking,
    generate_all,
    regional_efficiency,
    summarize,
)

__all__ = [
    "DatasetHandle",
    "load_and_clean",
    "regional_efficiency",
    "contractor_ranking",
    "annual_type_trends",
    "summarize",
    "generate_all",
]
