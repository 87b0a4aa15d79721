from __future__ import annotations

import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))


@pytest.fixture(autouse=True)
def no_runner_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests opt in to a runner location explicitly."""
    from tests.support.harness import RUNNER_ENV_VAR

    monkeypatch.delenv(RUNNER_ENV_VAR, raising=False)


@pytest.fixture
def runner_anchor(tmp_path: Path) -> Path:
    from tests.support.harness import make_runner

    return make_runner(tmp_path / "install")
