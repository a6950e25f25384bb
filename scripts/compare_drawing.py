"""Compare a saved drawing against a target and report the score.

Pipeline:
    1. Load the scorer config (defaults when --scorer is omitted)
    2. Load the target: a target.v1 YAML (image + required accuracy) or a
       bare image file (scorer threshold applies)
    3. Load the drawing image and run SimilarityScorer.compare
    4. Optionally write the difference map PNG and a YAML report

CLI:
    python scripts/compare_drawing.py --drawing out/drawing.png \\
                                      --target configs/targets/ring.yaml
    python scripts/compare_drawing.py --drawing out/drawing.png \\
                                      --target ref.png --scorer configs/scorer.v1.yaml \\
                                      --diff out/diff.png --report out/report.yaml

Exit codes:
    0: drawing matches the target
    1: no match
    2: usage or I/O error (missing file, invalid config, undecodable image)

Used by:
    - CLI: grading saved drawings offline
    - Tests: compare_main() is callable without argparse
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from sketchmatch.game.target import TargetSpec
from sketchmatch.raster.pixel_buffer import PixelBuffer
from sketchmatch.scoring.similarity import SimilarityScorer
from sketchmatch.utils import fs, logging_config, profiler

logger = logging.getLogger(__name__)

EXIT_MATCH = 0
EXIT_NO_MATCH = 1
EXIT_ERROR = 2

_YAML_SUFFIXES = {'.yaml', '.yml'}


def load_target(target_path: str) -> TargetSpec:
    """Target from a target.v1 YAML, or a bare image with default settings."""
    path = Path(target_path)
    if path.suffix.lower() in _YAML_SUFFIXES:
        return TargetSpec.from_config(path)
    return TargetSpec(
        reference_image=PixelBuffer.from_array(fs.load_image(path)),
        name=path.stem,
    )


def compare_main(
    drawing_path: str,
    target_path: str,
    scorer_cfg_path: Optional[str] = None,
    diff_path: Optional[str] = None,
    report_path: Optional[str] = None,
) -> Dict[str, Any]:
    """Score one drawing against one target.

    Parameters
    ----------
    drawing_path : str
        Drawing image (PNG recommended)
    target_path : str
        target.v1 YAML or reference image
    scorer_cfg_path : str, optional
        scorer.v1 YAML; defaults are used when omitted
    diff_path : str, optional
        Where to write the difference map PNG
    report_path : str, optional
        Where to write the YAML report

    Returns
    -------
    Dict[str, Any]
        Report dict: target, threshold, result fields, elapsed time and
        artifact paths

    Raises
    ------
    FileNotFoundError
        If an input file is missing
    ValueError
        If a config fails validation or an image cannot be decoded
    """
    scorer = SimilarityScorer.from_config(scorer_cfg_path) if scorer_cfg_path else SimilarityScorer()
    target = load_target(target_path)
    if Path(target_path).suffix.lower() in _YAML_SUFFIXES:
        scorer.set_match_threshold(target.required_accuracy)

    drawing = PixelBuffer.from_array(fs.load_image(drawing_path))
    logger.info(
        f"Comparing {drawing_path} ({drawing.width}x{drawing.height}) "
        f"against '{target.name}' ({target.reference_image.width}x{target.reference_image.height})"
    )

    timings: Dict[str, float] = {}
    with profiler.timer("compare", sink=timings.__setitem__):
        result = scorer.compare(drawing, target.reference_image)

    if diff_path:
        diff = scorer.get_difference_map(drawing, target.reference_image)
        fs.atomic_save_image(diff.to_uint8(), diff_path)
        logger.info(f"Difference map saved to {diff_path}")

    report = {
        'drawing': str(drawing_path),
        'target': {
            'name': target.name,
            'source': str(target_path),
            'complexity_level': target.complexity_level,
        },
        'match_threshold': scorer.match_threshold,
        'result': result.to_dict(),
        'elapsed_ms': round(timings['compare'] * 1000.0, 3),
        'artifacts': {
            'difference_map': str(diff_path) if diff_path else None,
            'report': str(report_path) if report_path else None,
        },
    }

    if report_path:
        fs.atomic_yaml_dump(report, report_path)
        logger.info(f"Report saved to {report_path}")

    return report


def main(argv=None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = argparse.ArgumentParser(
        description="Score a drawing image against a target image or target config"
    )
    parser.add_argument(
        "--drawing",
        type=str,
        required=True,
        help="Path to the drawing image (PNG)",
    )
    parser.add_argument(
        "--target",
        type=str,
        required=True,
        help="Path to a target.v1 YAML or a reference image",
    )
    parser.add_argument(
        "--scorer",
        type=str,
        default=None,
        help="Path to a scorer.v1 YAML (defaults when omitted)",
    )
    parser.add_argument(
        "--diff",
        type=str,
        default=None,
        help="Write the difference map PNG here",
    )
    parser.add_argument(
        "--report",
        type=str,
        default=None,
        help="Write a YAML report here",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )

    args = parser.parse_args(argv)

    logging_config.setup_logging(log_level=args.log_level, context={'app': 'compare'})
    logging_config.install_excepthook()

    try:
        report = compare_main(
            drawing_path=args.drawing,
            target_path=args.target,
            scorer_cfg_path=args.scorer,
            diff_path=args.diff,
            report_path=args.report,
        )
    except (FileNotFoundError, ValueError, RuntimeError, yaml.YAMLError) as e:
        logger.error(f"Comparison aborted: {e}")
        return EXIT_ERROR

    result = report['result']
    print("\n=== Comparison Complete ===")
    print(f"Target:  {report['target']['name']}")
    print(result['detail'])
    print(f"Match:   {'yes' if result['is_match'] else 'no'} "
          f"(threshold {report['match_threshold']:.2f})")

    return EXIT_MATCH if result['is_match'] else EXIT_NO_MATCH


if __name__ == "__main__":
    sys.exit(main())
