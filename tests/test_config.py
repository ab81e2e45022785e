import pytest
import yaml
from pydantic import ValidationError

from conftest import make_image
from regionkit.config import CompositeJobConfig, dump_job_config, load_job_config
from regionkit.settings import EngineSettings, get_settings, reset_settings_cache


@pytest.fixture
def job_dir(tmp_path):
    make_image(80, 60).save(tmp_path / "original.png")
    make_image(40, 30, value=255).save(tmp_path / "region.png")
    make_image(80, 60, channels=1).save(tmp_path / "mask.png")
    return tmp_path


def write_job(directory, **overrides):
    payload = {
        "original": "original.png",
        "region": "region.png",
        "mask": "mask.png",
        "box": {"x": 10, "y": 10, "width": 40, "height": 30},
    }
    payload.update(overrides)
    path = directory / "job.yaml"
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path


def test_settings_defaults(settings):
    assert settings.brush_width == 40
    assert settings.line_width == 20
    assert settings.close_threshold_px == 20
    assert settings.min_box_size == 20
    assert settings.area_min_size == 10
    assert settings.edge_blend == 3
    assert settings.expansion == 0
    assert settings.selection_mode == "union"


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("REGIONKIT_BRUSH_WIDTH", "12")
    monkeypatch.setenv("REGIONKIT_SELECTION_MODE", "subtract")
    settings = EngineSettings(_env_file=None)
    assert settings.brush_width == 12
    assert settings.selection_mode == "subtract"


def test_settings_validation():
    with pytest.raises(ValidationError):
        EngineSettings(_env_file=None, overlay_color=(0, 300, 0))
    with pytest.raises(ValidationError):
        EngineSettings(_env_file=None, selection_mode="intersect")


def test_get_settings_is_cached(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    first = get_settings()
    assert get_settings() is first
    reset_settings_cache()
    assert get_settings() is not first


def test_load_job_resolves_relative_paths(job_dir):
    config = load_job_config(write_job(job_dir, options={"edge_blend": 5}))
    assert config.original == (job_dir / "original.png").resolve()
    assert config.options.edge_blend == 5
    assert config.options.expansion == 0
    assert config.output.name == "original_composited.png"
    assert config.box.to_box().right == 50


def test_missing_input_is_rejected(job_dir):
    with pytest.raises(ValidationError):
        load_job_config(write_job(job_dir, region="nope.png"))


def test_non_mapping_job_is_rejected(tmp_path):
    path = tmp_path / "job.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_job_config(path)


def test_dump_and_reload(job_dir):
    config = load_job_config(write_job(job_dir, metadata={"prompt": "sky"}))
    path = dump_job_config(config, job_dir / "copy.yaml")
    reloaded = load_job_config(path)
    assert isinstance(reloaded, CompositeJobConfig)
    assert reloaded == config
