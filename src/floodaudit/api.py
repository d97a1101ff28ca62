from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from .cli import run as run_pipeline
from .config import load_config


@dataclass
class ReportOptions:
    input_csv: Optional[Path] = None
    output_dir: Optional[Path] = None
    min_contractor_projects: Optional[int] = None
    top_contractors: Optional[int] = None


def generate_reports(options: ReportOptions) -> Dict[str, Path]:
    """Programmatic interface to load the dataset and write every report.

    Returns a dict with keys: report1, report2, report3, summary.
    """
    env = dict(os.environ)
    if options.input_csv:
        env["INPUT_CSV"] = str(options.input_csv)
    if options.output_dir:
        env["OUTPUT_DIR"] = str(options.output_dir)
    if options.min_contractor_projects is not None:
        env["MIN_CONTRACTOR_PROJECTS"] = str(options.min_contractor_projects)
    if options.top_contractors is not None:
        env["TOP_CONTRACTORS"] = str(options.top_contractors)

    cfg = load_config(env, None)
    rc = run_pipeline(runtime_config=cfg)
    if rc != 0:
        raise RuntimeError(f"Report run failed with code {rc}")
    return {
        "report1": cfg.report1_csv,
        "report2": cfg.report2_csv,
        "report3": cfg.report3_csv,
        "summary": cfg.summary_json,
    }
