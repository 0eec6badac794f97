"""
CLI entrypoint for the MVI engine.

Provides two thin commands:
  - pipeline: run the full pipeline from a YAML config (uses run_from_config)
  - analyze: analyze one recording file and write its report

Usage:
  eeg-mvi pipeline --config configs/mvi.yaml
  eeg-mvi analyze --input data/sub01_raw.fif --out data/mvi --window 0.2 --step 0.05
"""

from __future__ import annotations
import argparse
from pathlib import Path
from typing import List, Optional

from .io.storage import save_report
from .pipeline import analyze_file, run_from_config
from .utils.logger import get_logger, set_verbosity

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eeg-mvi", description="Microstate Validity Index for EEG recordings")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_pipeline = sub.add_parser("pipeline", help="Run pipeline from config YAML")
    p_pipeline.add_argument("--config", type=str, default="configs/mvi.yaml", help="Path to pipeline config YAML")
    p_pipeline.add_argument("--verbose", "-v", action="store_true")

    p_analyze = sub.add_parser("analyze", help="Analyze one recording (.fif, .csv, .npy, .npz)")
    p_analyze.add_argument("--input", "-i", required=True, help="Recording file")
    p_analyze.add_argument("--out", "-o", required=True, help="Output folder for report files")
    p_analyze.add_argument("--sfreq", type=float, default=None, help="Sampling rate (Hz) for formats that do not store it")
    p_analyze.add_argument("--window", type=float, default=None, help="Window length (s)")
    p_analyze.add_argument("--step", type=float, default=None, help="Window step (s)")
    p_analyze.add_argument("--n-scales", type=int, default=None, help="Quantization scales for the dimension proxy")
    p_analyze.add_argument("--spacing", choices=("log", "linear"), default=None, help="Quantization scale spacing")
    p_analyze.add_argument("--centering", choices=("channel", "spatial"), default=None)
    p_analyze.add_argument("--n-jobs", type=int, default=None, help="Worker threads for per-window features")
    p_analyze.add_argument("--no-ranking", action="store_true", help="Skip the band relevance ranking")
    p_analyze.add_argument("--verbose", "-v", action="store_true")
    return parser


def cli(argv: Optional[List[str]] = None) -> None:
    args = _build_parser().parse_args(argv)
    set_verbosity(args.verbose)
    if args.cmd == "pipeline":
        cfg_path = Path(args.config)
        logger.info("Starting pipeline with config %s", cfg_path)
        run_from_config(str(cfg_path))
    elif args.cmd == "analyze":
        analysis = {
            "window_sec": args.window,
            "step_sec": args.step,
            "centering": args.centering,
            "n_jobs": args.n_jobs,
        }
        analysis = {k: v for k, v in analysis.items() if v is not None}
        dimension = {"n_scales": args.n_scales, "spacing": args.spacing}
        dimension = {k: v for k, v in dimension.items() if v is not None}
        if dimension:
            analysis["dimension"] = dimension
        report = analyze_file(args.input, sfreq=args.sfreq, analysis=analysis, ranking=not args.no_ranking)
        save_report(report, args.out, stem=Path(args.input).stem)
        print(f"Global MVI: {report.validity.global_record.mvi:.4f} -> {report.validity.decision}")
        if report.relevance is not None:
            print(f"Most relevant band: {report.relevance.most_relevant.name}")


if __name__ == "__main__":
    cli()
