"""Storage helpers for MVI reports.

Provides:
  - records_to_frame(records, bands) -> pandas DataFrame, one row per window
  - report_summary(report) -> JSON-serialisable dict (global record, decision, ranking, config)
  - save_report(report, out_dir, stem) -> paths of the written parquet / json / npy artifacts
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd

from ..utils.logger import get_logger
from ..validity.records import FrequencyBand, MVIReport, ValidityRecord

logger = get_logger(__name__)


def records_to_frame(records: Sequence[ValidityRecord], bands: Sequence[FrequencyBand]) -> pd.DataFrame:
    """Flatten window records into a table (diagnostics are reduced to a count and a code list)."""
    rows = []
    for r in records:
        row = r.to_dict(bands)
        diags = row.pop("diagnostics")
        row["n_diagnostics"] = len(diags)
        row["diagnostic_codes"] = ",".join(sorted({d["code"] for d in diags}))
        rows.append(row)
    return pd.DataFrame(rows)


def report_summary(report: MVIReport) -> Dict[str, Any]:
    validity = report.validity
    summary: Dict[str, Any] = {
        "decision": validity.decision,
        "is_valid": validity.is_valid,
        "threshold": validity.threshold,
        "n_windows": len(validity.windows),
        "global": validity.global_record.to_dict(validity.bands),
        "bands": [b.to_dict() for b in validity.bands],
        "config": report.config,
    }
    if report.relevance is not None:
        summary["band_relevance"] = [s.to_dict() for s in report.relevance.scores]
        summary["most_relevant_band"] = report.relevance.most_relevant.name
        summary["relevance_diagnostics"] = [d.to_dict() for d in report.relevance.diagnostics]
    return summary


def save_report(
    report: MVIReport,
    out_dir: str | Path,
    stem: str = "recording",
    parquet_engine: str = "pyarrow",
) -> List[Path]:
    """
    Persist a report.

    Writes:
      - <stem>_mvi_windows.parquet: per-window records
      - <stem>_mvi_summary.json: global record, decision, ranking and config
      - <stem>_gfp.npy: full-resolution GFP (only when a ranking was computed)

    Returns:
        List of written paths.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    df = records_to_frame(report.validity.windows, report.validity.bands)
    pq_path = out_dir / f"{stem}_mvi_windows.parquet"
    df.to_parquet(pq_path, engine=parquet_engine, index=False)
    written.append(pq_path)
    logger.info("Wrote window records %s (n_windows=%d)", pq_path, len(df))

    summary_path = out_dir / f"{stem}_mvi_summary.json"
    summary_path.write_text(json.dumps(report_summary(report), indent=2), encoding="utf-8")
    written.append(summary_path)

    if report.relevance is not None:
        gfp_path = out_dir / f"{stem}_gfp.npy"
        np.save(gfp_path, np.asarray(report.relevance.gfp))
        written.append(gfp_path)

    logger.info("Saved MVI report for %s to %s", stem, out_dir)
    return written
