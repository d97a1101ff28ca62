import argparse
import csv
import logging
import os
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

from dotenv import load_dotenv

from .config import Config
from .config import load_config as load_runtime_config
from .dataset import DatasetHandle, DatasetNotLoadedError
from .loader import MAX_FUNDING_YEAR, MIN_FUNDING_YEAR
from .models import ContractorRankingRow, RegionSummaryRow, ReportBundle, TypeTrendRow
from .reports import generate_all
from .stats import format_number
from .writers import preview_table, write_outputs

logger = logging.getLogger(__name__)

YEAR_SPAN = f"{MIN_FUNDING_YEAR}–{MAX_FUNDING_YEAR}"

PREVIEW_ROWS = {
    "report1": 2,
    "report2": 2,
    "report3": 3,
}


def handle_load(dataset: DatasetHandle, cfg: Config) -> bool:
    """Load and clean ``cfg.input_csv`` into ``dataset``; log diagnostics."""

    try:
        report = dataset.load(cfg.input_csv)
    except (OSError, ValueError, csv.Error) as exc:
        logger.error("Failed to load file: %s\n", exc)
        return False

    logger.info(
        "Processing dataset... (%s rows loaded, %s filtered for %s)",
        f"{report.total_rows:,}",
        f"{report.filtered_rows:,}",
        YEAR_SPAN,
    )
    logger.info("Note: %s rows skipped due to parse/validation errors.", f"{report.parse_errors:,}")
    if report.imputed_coords > 0:
        logger.info("Info: Imputed coordinates for %s rows.", f"{report.imputed_coords:,}")
    logger.info("")
    return True


def _build_reports(dataset: DatasetHandle, cfg: Config) -> ReportBundle:
    return generate_all(
        dataset.records,
        high_delay_days=cfg.high_delay_days,
        min_projects=cfg.min_contractor_projects,
        top_n=cfg.top_contractors,
        delay_norm_days=cfg.delay_norm_days,
        risk_threshold=cfg.risk_threshold,
    )


def _preview(path: Path, rows, row_type, max_rows: int) -> None:
    logger.info("%s\n", preview_table(rows, row_type, max_rows))
    logger.info("(Full table exported to %s)\n", path)


def handle_generate_reports(dataset: DatasetHandle, cfg: Config) -> Optional[Dict[str, Path]]:
    """
    Generate all reports from the loaded dataset and write them out.

    Returns the artifacts that were written, or ``None`` when no dataset is
    loaded.  Write failures are logged per artifact and do not stop the
    remaining reports.
    """

    try:
        bundle = _build_reports(dataset, cfg)
    except DatasetNotLoadedError:
        logger.error("Error: No data loaded. Please load the CSV file first (option 1).\n")
        return None

    logger.info("Generating reports...")
    logger.info("Outputs saved to individual files...\n")
    written = write_outputs(bundle, cfg.output_dir)

    logger.info("Report 1: Regional Flood Mitigation Efficiency Summary\n")
    logger.info("(Filtered: %s Projects)\n", YEAR_SPAN)
    _preview(cfg.report1_csv, bundle.regional, RegionSummaryRow, PREVIEW_ROWS["report1"])

    logger.info("Report 2: Top Contractors Performance Ranking\n")
    logger.info("(Top %s by TotalCost, >=%s Projects)\n", cfg.top_contractors, cfg.min_contractor_projects)
    _preview(cfg.report2_csv, bundle.contractors, ContractorRankingRow, PREVIEW_ROWS["report2"])

    logger.info("Report 3: Annual Project Type Cost Overrun Trends\n")
    logger.info("(Grouped by FundingYear and TypeOfWork)\n")
    _preview(cfg.report3_csv, bundle.trends, TypeTrendRow, PREVIEW_ROWS["report3"])

    summary = bundle.summary
    if summary is not None:
        logger.info("Summary Stats (%s):", cfg.summary_json.name)
        logger.info(
            '{"global_avg_delay_days": "%s", "total_savings": %s}\n',
            format_number(summary.global_avg_delay_days, 2),
            format_number(summary.total_savings, 2),
        )
    return written


def _prompt_back_to_menu(input_fn: Callable[[str], str]) -> bool:
    while True:
        answer = input_fn("Back to Report Selection (Y/N): ").strip().upper()
        if answer == "Y":
            return True
        if answer == "N":
            return False
        logger.info("Invalid choice. Please enter Y or N.")


def interactive_loop(
    dataset: DatasetHandle,
    cfg: Config,
    input_fn: Callable[[str], str] = input,
) -> int:
    """Menu-driven session: ``[1]`` loads the file, ``[2]`` generates reports."""

    while True:
        logger.info("Select Option:")
        logger.info("[1] Load the file")
        logger.info("[2] Generate Reports\n")
        try:
            choice = input_fn("Enter choice: ").strip()
        except EOFError:
            return 0
        if choice == "1":
            handle_load(dataset, cfg)
        elif choice == "2":
            logger.info("")
            handle_generate_reports(dataset, cfg)
            if not _prompt_back_to_menu(input_fn):
                logger.info(" Exiting DPWH Flood Control Data Pipeline...")
                return 0
        else:
            logger.info("Invalid choice. Please enter 1 or 2.\n")


def run(runtime_config: Config, dataset: Optional[DatasetHandle] = None) -> int:
    """Load the input file once and write every report; returns an exit code."""

    dataset = dataset or DatasetHandle()
    if runtime_config.interactive:
        return interactive_loop(dataset, runtime_config)
    if not handle_load(dataset, runtime_config):
        return 1
    written = handle_generate_reports(dataset, runtime_config)
    if written is None or len(written) < 4:
        return 1
    logger.info("Outputs written:")
    for path in written.values():
        logger.info(" - %s", path)
    return 0


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Clean DPWH flood control projects and generate analyst reports")
    parser.add_argument("--input-csv", help="Path to the flood control projects CSV")
    parser.add_argument("--output-dir", help="Directory for generated reports")
    parser.add_argument("--min-contractor-projects", type=int, help="Minimum projects for a contractor to be ranked")
    parser.add_argument("--top-contractors", type=int, help="Number of contractors kept in the ranking")
    parser.add_argument("-i", "--interactive", action="store_true", help="Run the menu-driven session")
    parser.add_argument("-v", "--verbose", action="store_true", help="Increase logging verbosity")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv(Path.cwd() / ".env")
    args = parse_args(argv)
    runtime_cfg = load_runtime_config(os.environ, args)
    log_level = logging.DEBUG if runtime_cfg.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(message)s")
    try:
        return run(runtime_config=runtime_cfg)
    except Exception:  # pragma: no cover - defensive
        logger.exception("Fatal error during report generation")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
