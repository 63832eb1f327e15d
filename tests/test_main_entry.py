from __future__ import annotations

import runpy
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for sub in ("apps/display", "packages/core", "packages/display_protocol", "packages/renderer"):
    sys.path.insert(0, str(ROOT / sub))

import cactuspi_app.__main__ as display_main


def test_main_defaults_to_run(monkeypatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(display_main, "_cli_main", lambda argv=None: calls.append(list(argv or [])) or 0)

    rc = display_main.main([])
    assert rc == 0
    assert calls == [["run"]]


def test_main_passes_through_args(monkeypatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(display_main, "_cli_main", lambda argv=None: calls.append(list(argv or [])) or 0)

    rc = display_main.main(["doctor", "--led-chain", "1"])
    assert rc == 0
    assert calls == [["doctor", "--led-chain", "1"]]


def test_main_module_runpath_without_package_context() -> None:
    main_path = ROOT / "apps" / "display" / "cactuspi_app" / "__main__.py"
    result = runpy.run_path(str(main_path))
    assert "main" in result
