from pathlib import Path

import pytest
import yaml

from ndvi_change.config import ChangeConfig, load_config


def _write(tmp_path, cfg):
    path = tmp_path / "configs" / "change.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(cfg))
    return path


def test_load_config_defaults_and_relative_paths(tmp_path):
    path = _write(
        tmp_path,
        {"earlier_scene": "../landsat/a", "later_scene": "/data/b", "output_dir": "out"},
    )
    config = load_config(path)
    assert config.earlier_scene == path.parent / "../landsat/a"
    assert config.later_scene == Path("/data/b")
    assert config.output_dir == path.parent / "out"
    assert config.red_band == "B4"
    assert config.nir_band == "B5"
    assert config.scale == pytest.approx(0.0000275)
    assert config.offset == pytest.approx(-0.2)
    assert config.threshold == pytest.approx(0.2)
    assert config.boundary is None
    assert config.source == path


def test_load_config_with_boundary(tmp_path):
    path = _write(
        tmp_path,
        {
            "earlier_scene": "a",
            "later_scene": "b",
            "output_dir": "out",
            "threshold": 0.3,
            "boundary": {"path": "wari/Narsingdi.shp", "crs": 4326, "column": "NAME_2", "values": "Narsingdi"},
        },
    )
    config = load_config(path)
    assert config.threshold == pytest.approx(0.3)
    assert config.boundary.path == path.parent / "wari/Narsingdi.shp"
    assert config.boundary.crs == 4326
    assert config.boundary.values == ["Narsingdi"]
    assert config.boundary.mask is True


def test_missing_required_keys(tmp_path):
    path = _write(tmp_path, {"earlier_scene": "a"})
    with pytest.raises(KeyError, match="later_scene"):
        load_config(path)


def test_boundary_values_need_column():
    with pytest.raises(KeyError):
        ChangeConfig.from_dict(
            {"earlier_scene": "a", "later_scene": "b", "output_dir": "o", "boundary": {"path": "x.shp", "values": ["A"]}}
        )


def test_negative_threshold_rejected():
    with pytest.raises(ValueError):
        ChangeConfig.from_dict({"earlier_scene": "a", "later_scene": "b", "output_dir": "o", "threshold": -1})


def test_non_mapping_config_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(path)


def test_to_dict_is_json_friendly():
    config = ChangeConfig.from_dict(
        {"earlier_scene": "a", "later_scene": "b", "output_dir": "o", "boundary": {"path": "x.shp"}},
        base_dir="/work",
    )
    data = config.to_dict()
    assert data["earlier_scene"] == str(Path("/work/a"))
    assert data["boundary"]["path"] == str(Path("/work/x.shp"))
    assert "source" not in data
