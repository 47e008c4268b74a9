import pytest

from touchbridge.app import load_config
from touchbridge.config import EditorConfig


def test_defaults():
    cfg = EditorConfig.from_dict(None)
    assert cfg.capture.poll_interval_ms == 200
    assert cfg.capture.timeout_ms == 5000
    assert cfg.capture.cancel_key == "escape"
    assert (cfg.surface.width, cfg.surface.height) == (320, 240)


def test_from_dict_round_trip():
    data = {"capture": {"poll_interval_ms": 100, "timeout_ms": 3000, "cancel_key": "backspace"},
            "surface": {"width": 400, "height": 240}}
    assert EditorConfig.from_dict(data).to_dict() == data


def test_load_config_from_profile_file(tmp_path):
    path = tmp_path / "profiles.yaml"
    path.write_text("capture:\n  timeout_ms: 2500\nprofiles: []\n", encoding="utf-8")
    cfg = load_config(str(path))
    assert cfg.capture.timeout_ms == 2500
    assert cfg.capture.poll_interval_ms == 200
    assert load_config(str(tmp_path / "missing.yaml")).capture.timeout_ms == 5000


def test_load_config_rejects_non_mapping(tmp_path):
    path = tmp_path / "profiles.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(path))
