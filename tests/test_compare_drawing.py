"""Test the compare_drawing CLI.

Tests for scripts/compare_drawing.py:
    - compare_main() callable without argparse; report structure
    - Target as target.v1 YAML (required accuracy applies) or bare image
    - Difference map and YAML report artifacts written
    - Exit codes: 0 match, 1 no match, 2 missing input / invalid config

Synthetic inputs:
    - Drawings are written to tmp_path as PNG
    - Shipped configs/targets/ring.yaml is the YAML target

Run:
    pytest tests/test_compare_drawing.py -v
"""

import sys

import numpy as np
import pytest

from scripts.compare_drawing import EXIT_ERROR, EXIT_MATCH, EXIT_NO_MATCH, compare_main, main
from sketchmatch.utils import fs


@pytest.fixture
def ring_png(project_root):
    return project_root / "configs/targets/ring.png"


@pytest.fixture
def blank_png(tmp_path):
    path = tmp_path / "blank.png"
    fs.atomic_save_image(np.ones((64, 64, 4), dtype=np.float32), path)
    return path


@pytest.fixture
def black_png(tmp_path):
    img = np.zeros((64, 64, 4), dtype=np.float32)
    img[..., 3] = 1.0
    path = tmp_path / "black.png"
    fs.atomic_save_image(img, path)
    return path


def test_compare_main_identical_image(ring_png):
    report = compare_main(str(ring_png), str(ring_png))
    assert report['result']['is_match']
    assert report['result']['overall_score'] == pytest.approx(1.0)
    assert report['target']['name'] == "ring"
    assert report['artifacts']['difference_map'] is None
    assert report['elapsed_ms'] >= 0.0


def test_compare_main_yaml_target_threshold(project_root, blank_png):
    report = compare_main(str(blank_png), str(project_root / "configs/targets/cross.yaml"))
    assert report['match_threshold'] == pytest.approx(0.8)
    assert report['target']['complexity_level'] == 2


def test_compare_main_writes_artifacts(ring_png, black_png, tmp_path):
    diff_path = tmp_path / "out" / "diff.png"
    report_path = tmp_path / "out" / "report.yaml"

    report = compare_main(
        str(black_png), str(ring_png), diff_path=str(diff_path), report_path=str(report_path)
    )

    assert diff_path.exists()
    diff = fs.load_image(diff_path)
    assert diff.shape == (64, 64, 4)
    # Black drawing vs white corner of the ring target: fully red
    assert diff[0, 0] == pytest.approx((1.0, 0.0, 0.0, 1.0))

    saved = fs.load_yaml(report_path)
    assert saved['result'] == report['result']
    assert saved['artifacts']['report'] == str(report_path)


def test_main_exit_match(ring_png, clean_logging):
    assert main(["--drawing", str(ring_png), "--target", str(ring_png)]) == EXIT_MATCH
    assert sys.excepthook is not sys.__excepthook__


def test_main_exit_no_match(project_root, black_png, clean_logging):
    code = main([
        "--drawing", str(black_png),
        "--target", str(project_root / "configs/targets/ring.yaml"),
        "--scorer", str(project_root / "configs/scorer.v1.yaml"),
    ])
    assert code == EXIT_NO_MATCH


def test_main_exit_missing_file(tmp_path, ring_png, clean_logging):
    code = main(["--drawing", str(tmp_path / "absent.png"), "--target", str(ring_png)])
    assert code == EXIT_ERROR


def test_main_exit_invalid_scorer(tmp_path, ring_png, clean_logging):
    bad = tmp_path / "scorer.yaml"
    bad.write_text("schema: scorer.v1\nmatch_threshold: 7\n", encoding='utf-8')
    code = main(["--drawing", str(ring_png), "--target", str(ring_png), "--scorer", str(bad)])
    assert code == EXIT_ERROR


def test_main_requires_arguments():
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 2
