"""Tests for the configuration loading."""

import numpy as np
import pytest

from cad_to_robot.config import Config
from cad_to_robot.exceptions import ConfigFileNotFound, ConfigParseError
from cad_to_robot.geometry import Box, Cylinder, Sphere


def test_load(write_config):
    filename = write_config(
        {
            "robotName": "walker",
            "scale": [0.001, 0.001, 0.001],
            "rename": {"SIM_BASE": "base"},
            "assignedMasses": {"base": 2.0},
            "linkFrames": [{"linkName": "base", "frameName": "CSYS_BASE"}],
        }
    )
    config = Config.load(filename)

    assert config.robot_name == "walker"
    np.testing.assert_allclose(config.scale, [0.001] * 3)
    assert config.rename("SIM_BASE") == "base"
    assert config.assigned_mass("base") == 2.0
    assert config.assigned_mass("other") is None
    assert config.link_frame("base") == "CSYS_BASE"
    assert config.link_frame("other") == ""


def test_defaults():
    config = Config({})

    assert config.robot_name == "robot"
    assert config.root is None
    np.testing.assert_allclose(config.scale, [1.0, 1.0, 1.0])
    assert config.filename_format == "%s"
    assert not config.export_all_useradded
    assert not config.has_origin
    np.testing.assert_allclose(config.color("any"), [0.5, 0.5, 0.5, 1.0])


def test_missing_file(tmp_path):
    with pytest.raises(ConfigFileNotFound):
        Config.load(str(tmp_path / "missing.yaml"))


def test_parse_error(tmp_path):
    filename = tmp_path / "bad.yaml"
    filename.write_text("rename: [unclosed\n")

    with pytest.raises(ConfigParseError):
        Config.load(str(filename))


def test_not_a_mapping(tmp_path):
    filename = tmp_path / "list.yaml"
    filename.write_text("- a\n- b\n")

    with pytest.raises(ConfigParseError):
        Config.load(str(filename))


def test_bad_scale():
    with pytest.raises(ConfigParseError):
        Config({"scale": [1.0, 2.0]})


def test_filename_format_requires_placeholder():
    with pytest.raises(ConfigParseError):
        Config({"filenameformat": "meshes/mesh.stl"})


def test_rename_fallback(capsys):
    config = Config({"rename": {"A": "a"}})

    assert config.rename("B") == "B"
    assert "WARNING" in capsys.readouterr().out
    assert not config.has_rename("B")


def test_collision_geometry():
    config = Config(
        {
            "assignedCollisionGeometry": [
                {
                    "linkName": "box",
                    "geometricShape": {"shape": "box", "size": [1, 2, 3], "origin": [0, 0, 0, 0, 0, 0]},
                },
                {
                    "linkName": "cylinder",
                    "geometricShape": {"shape": "cylinder", "radius": 0.1, "length": 0.5, "origin": [0, 0, 1, 0, 0, 0]},
                },
                {
                    "linkName": "sphere",
                    "geometricShape": {"shape": "sphere", "radius": 0.2, "origin": [0, 0, 0, 0, 0, 0]},
                },
            ]
        }
    )

    assert isinstance(config.collision_geometry("box"), Box)
    cylinder = config.collision_geometry("cylinder")
    assert isinstance(cylinder, Cylinder)
    assert cylinder.length == 0.5
    np.testing.assert_allclose(cylinder.T_link_shape[:3, 3], [0, 0, 1])
    assert isinstance(config.collision_geometry("sphere"), Sphere)
    assert config.collision_geometry("other") is None


def test_unknown_collision_shape():
    with pytest.raises(ConfigParseError):
        Config(
            {
                "assignedCollisionGeometry": [
                    {"linkName": "l", "geometricShape": {"shape": "cone", "origin": [0] * 6}}
                ]
            }
        )


def test_reverse_rotation_axis():
    as_string = Config({"reverseRotationAxis": "l_knee r_knee"})
    assert as_string.reverse_rotation_axis("l_knee")
    assert not as_string.reverse_rotation_axis("L_KNEE")
    assert not as_string.reverse_rotation_axis("l_ankle")

    as_list = Config({"reverseRotationAxis": ["l_knee", "r_knee"]})
    assert as_list.reverse_rotation_axis("r_knee")
    assert not as_list.reverse_rotation_axis("knee")

    assert not Config({}).reverse_rotation_axis("l_knee")


def test_exported_frames():
    config = Config(
        {
            "exportedFrames": [
                {
                    "frameName": "SCSYS_IMU",
                    "frameReferenceLink": "head",
                    "exportedFrameName": "imu_frame",
                    "additionalTransformation": [0, 0, 1, 0, 0, 0],
                },
                {
                    "frameName": "SCSYS_CAM",
                    "frameReferenceLink": "head",
                    "exportedFrameName": "camera_frame",
                },
            ]
        }
    )

    imu = config.exported_frames["SCSYS_IMU"]
    assert imu.reference_link == "head"
    assert imu.exported_name == "imu_frame"
    np.testing.assert_allclose(imu.T_additional[:3, 3], [0, 0, 1])
    np.testing.assert_allclose(config.exported_frames["SCSYS_CAM"].T_additional, np.eye(4))


def test_assigned_color_partial():
    config = Config({"assignedColors": {"l": [1.0, 0.0, 0.0]}})

    np.testing.assert_allclose(config.color("l"), [1.0, 0.0, 0.0, 1.0])


@pytest.mark.parametrize(
    "data",
    [
        {"linkFrames": [{"linkName": "base"}]},
        {"assignedInertias": [{"linkName": "base", "xx": 1.0}]},
        {"assignedInertias": [{"linkName": "base", "xx": 1.0, "yy": "heavy", "zz": 1.0}]},
        {"exportedFrames": [{"frameName": "SCSYS_IMU", "frameReferenceLink": "head"}]},
        {
            "exportedFrames": [
                {
                    "frameName": "SCSYS_IMU",
                    "frameReferenceLink": "head",
                    "exportedFrameName": "imu_frame",
                    "additionalTransformation": [0, 0, 1],
                }
            ]
        },
        {"assignedCollisionGeometry": [{"linkName": "base"}]},
        {"linkFrames": ["base"]},
    ],
)
def test_malformed_entries(data):
    with pytest.raises(ConfigParseError):
        Config(data)
