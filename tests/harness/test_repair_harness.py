import json
import os
import subprocess
import sys

import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
TEST_DIR = os.path.dirname(__file__)

# Every broken_*.json has a broken_*.expected holding the repaired output
BROKEN_FILES = sorted(f for f in os.listdir(TEST_DIR) if f.startswith("broken_") and f.endswith(".json"))

# Hard fail if test files are missing
if not BROKEN_FILES:
    raise RuntimeError("No broken_*.json files found in harness directory")


def expected_for(filename):
    path = os.path.join(TEST_DIR, filename[: -len(".json")] + ".expected")
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


@pytest.mark.parametrize("filename", BROKEN_FILES)
def test_cli_repairs_file(filename):
    path = os.path.join(TEST_DIR, filename)
    result = subprocess.run(
        [sys.executable, "json_fixer.py", path],
        capture_output=True, text=True, cwd=REPO_ROOT,
    )
    assert result.returncode == 0, f"Expected 0 from {filename}, got {result.returncode}"
    assert result.stdout == expected_for(filename)


@pytest.mark.parametrize("filename", BROKEN_FILES)
def test_expected_output_is_strict_json(filename):
    json.loads(expected_for(filename))
