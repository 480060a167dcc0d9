from __future__ import annotations

import shutil
from pathlib import Path

import pytest

FIXTURE = Path(__file__).resolve().parents[1] / "fixtures" / "solutions" / "sample"


@pytest.fixture
def sample_manifest(tmp_path: Path) -> Path:
    """Copy the sample solution tree and return its manifest path."""
    target = tmp_path / "sample"
    shutil.copytree(FIXTURE, target)
    return target / "solution" / "Sample.sln"
