"""Tests for project metadata."""
import re
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


def test_readme_is_project_readme():
    pyproject = (ROOT / "pyproject.toml").read_text()
    match = re.search(r'^readme\s*=\s*"([^"]+)"', pyproject, re.MULTILINE)
    assert match is not None
    assert match.group(1) == "README.md"
    assert "pip install" in (ROOT / match.group(1)).read_text()
