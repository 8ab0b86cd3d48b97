from __future__ import annotations

import importlib.util
from pathlib import Path


def _load_script():
    path = Path(__file__).resolve().parents[1] / "scripts" / "admin_usage.py"
    spec = importlib.util.spec_from_file_location("admin_usage", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)  # type: ignore[union-attr]
    return module


def test_build_request_variants():
    script = _load_script()
    parser = script.build_parser()
    assert script.build_request(parser.parse_args([])) == ("GET", None)
    assert script.build_request(parser.parse_args(["--reset"])) == ("POST", {"action": "reset"})
    assert script.build_request(parser.parse_args(["--max-speech", "20"])) == (
        "POST",
        {"action": "updateLimits", "maxSpeechRequests": 20},
    )
