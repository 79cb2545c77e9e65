from __future__ import annotations

import pytest

import runtime.version as version
from core.config import build_parser


def test_version_metadata() -> None:
    assert version.as_string() == f"mc-sync {version.VERSION} (Build {version.BUILD})"
    assert version.as_dict()["project"] == "mc-sync"
    assert version.as_dict()["license"] == "MIT"


def test_app_entrypoint_imports() -> None:
    import core.app

    assert callable(core.app.run)
    assert callable(core.app.main)


def test_version_flag_prints_version(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        build_parser().parse_args(["--version"])

    assert exc.value.code == 0
    assert version.as_string() in capsys.readouterr().out
