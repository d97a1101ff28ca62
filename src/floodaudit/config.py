from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Mapping, Optional

from .writers import REPORT1_FILENAME, REPORT2_FILENAME, REPORT3_FILENAME, SUMMARY_FILENAME

DEFAULT_INPUT_NAME = "dpwh_flood_control_projects.csv"
DEFAULT_MIN_CONTRACTOR_PROJECTS = 5
DEFAULT_TOP_CONTRACTORS = 15
DEFAULT_DELAY_NORM_DAYS = 90.0
DEFAULT_HIGH_DELAY_DAYS = 30.0
DEFAULT_RISK_THRESHOLD = 50.0


@dataclass(frozen=True)
class Config:
    """Runtime configuration assembled from environment variables and CLI options."""

    base_dir: Path
    input_csv: Path
    output_dir: Path
    report1_csv: Path
    report2_csv: Path
    report3_csv: Path
    summary_json: Path
    min_contractor_projects: int = DEFAULT_MIN_CONTRACTOR_PROJECTS
    top_contractors: int = DEFAULT_TOP_CONTRACTORS
    delay_norm_days: float = DEFAULT_DELAY_NORM_DAYS
    high_delay_days: float = DEFAULT_HIGH_DELAY_DAYS
    risk_threshold: float = DEFAULT_RISK_THRESHOLD
    interactive: bool = False
    verbose: bool = False


def _to_path(value: object | None) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value.expanduser().resolve()
    text = str(value).strip()
    if not text:
        return None
    return Path(text).expanduser().resolve()


def _to_int(value: object | None) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def _to_float(value: object | None) -> Optional[float]:
    if value is None:
        return None
    text = str(value).replace(",", "").strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _namespace(cli_args: object | None) -> SimpleNamespace:
    if cli_args is None:
        return SimpleNamespace()
    if isinstance(cli_args, SimpleNamespace):
        return cli_args
    if hasattr(cli_args, "__dict__"):
        return SimpleNamespace(**{k: v for k, v in vars(cli_args).items()})
    return SimpleNamespace()


def _first(*values: Optional[int]) -> Optional[int]:
    for value in values:
        if value is not None:
            return value
    return None


def load_config(env: Mapping[str, str], cli_args: object | None = None) -> Config:
    """Build a runtime :class:`Config` from environment variables and CLI options.

    CLI options win over environment variables, which win over defaults.
    Values that fail to parse fall back to the next source.
    """

    base_dir = Path.cwd().resolve()
    cli_ns = _namespace(cli_args)

    input_csv = (
        _to_path(getattr(cli_ns, "input_csv", None))
        or _to_path(env.get("INPUT_CSV"))
        or (base_dir / DEFAULT_INPUT_NAME)
    )
    output_dir = (
        _to_path(getattr(cli_ns, "output_dir", None))
        or _to_path(env.get("OUTPUT_DIR"))
        or base_dir
    )

    min_projects = _first(
        _to_int(getattr(cli_ns, "min_contractor_projects", None)),
        _to_int(env.get("MIN_CONTRACTOR_PROJECTS")),
    )
    top_contractors = _first(
        _to_int(getattr(cli_ns, "top_contractors", None)),
        _to_int(env.get("TOP_CONTRACTORS")),
    )
    delay_norm_days = _to_float(env.get("DELAY_NORM_DAYS"))
    high_delay_days = _to_float(env.get("HIGH_DELAY_DAYS"))
    risk_threshold = _to_float(env.get("RISK_THRESHOLD"))

    return Config(
        base_dir=base_dir,
        input_csv=input_csv,
        output_dir=output_dir,
        report1_csv=output_dir / REPORT1_FILENAME,
        report2_csv=output_dir / REPORT2_FILENAME,
        report3_csv=output_dir / REPORT3_FILENAME,
        summary_json=output_dir / SUMMARY_FILENAME,
        min_contractor_projects=max(1, min_projects) if min_projects is not None else DEFAULT_MIN_CONTRACTOR_PROJECTS,
        top_contractors=max(1, top_contractors) if top_contractors is not None else DEFAULT_TOP_CONTRACTORS,
        delay_norm_days=delay_norm_days if delay_norm_days else DEFAULT_DELAY_NORM_DAYS,
        high_delay_days=high_delay_days if high_delay_days is not None else DEFAULT_HIGH_DELAY_DAYS,
        risk_threshold=risk_threshold if risk_threshold is not None else DEFAULT_RISK_THRESHOLD,
        interactive=bool(getattr(cli_ns, "interactive", False)),
        verbose=bool(getattr(cli_ns, "verbose", False)),
    )


__all__ = ["Config", "load_config"]
