# test_config.py
import json
import pathlib
import sys
from pathlib import Path

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from config import DEFAULT_WS_PATH, get_settings


def _settings():
    get_settings.cache_clear()
    return get_settings()


def test_defaults_from_config():
    settings = _settings()
    data = json.loads(Path("config.json").read_text())
    assert settings.printer_ws_path == data["printer_ws_path"]
    assert settings.admin_roles == data["admin_roles"]


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PRINTER_WS_PATH", "/bridge")
    monkeypatch.setenv("PRINTER_BRIDGE_SECRET", "from-env-secret-value")
    settings = _settings()
    assert settings.printer_ws_path == "/bridge"
    assert settings.printer_bridge_secret == "from-env-secret-value"
    monkeypatch.delenv("PRINTER_WS_PATH")
    _settings()


def test_missing_key_uses_default(monkeypatch):
    original = Path("config.json").read_text()
    monkeypatch.setattr(
        Path,
        "read_text",
        lambda self: json.dumps(
            {k: v for k, v in json.loads(original).items() if k != "printer_ws_path"}
        ),
    )
    settings = _settings()
    assert settings.printer_ws_path == DEFAULT_WS_PATH
    monkeypatch.undo()
    _settings()
