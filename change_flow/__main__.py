"""
Command-line entry point: ``python -m change_flow``.

Runs change analysis and writes the run's JSON artifacts.
"""

import argparse
import logging
import sys
from typing import List, Optional

from change_flow.core.artifacts import (
    write_change_analysis,
    write_generated_targets,
    write_test_target_index,
)
from change_flow.core.change_analyzer import ChangeAnalyzer
from change_flow.core.config import load_config
from change_flow.core.errors import ChangeFlowError
from change_flow.core.target_generator import TestTargetGenerator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="change_flow",
        description="Analyze changed code and generate targeted UI/API test targets.",
    )
    parser.add_argument("--config", help="Path to configuration YAML file (default: changeflow.config.yaml)")
    parser.add_argument("--root", dest="project_root", help="Project root to analyze.")
    parser.add_argument("--base", dest="base_ref", help="Base revision (default: HEAD~1).")
    parser.add_argument("--head", dest="head_ref", help="Head revision (default: HEAD).")
    parser.add_argument("--output-dir", dest="output_dir", help="Directory for JSON artifacts.")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging verbosity.")
    return parser


def run(args: argparse.Namespace) -> int:
    cli_overrides = {
        "project_root": args.project_root,
        "base_ref": args.base_ref,
        "head_ref": args.head_ref,
        "output_dir": args.output_dir,
    }
    config = load_config(config_path=args.config, cli_args=cli_overrides)

    analysis = ChangeAnalyzer(config).detect_code_changes()
    targets = TestTargetGenerator.from_config(config).generate(analysis.files)

    write_change_analysis(analysis, config.change_analysis_path())
    write_test_target_index(analysis, config.test_targets_path())
    write_generated_targets(targets, config.generated_targets_path())

    summary = analysis.summary
    print(f"Analysis complete: {summary.total_changes} files analyzed")
    print(f"- Added: {summary.added}")
    print(f"- Modified: {summary.modified}")
    print(f"- Deleted: {summary.deleted}")
    print(f"- Test targets: {len(targets)}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        return run(args)
    except ChangeFlowError as e:
        print(f"change_flow: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
