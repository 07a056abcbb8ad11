"""End-to-end conversion of an assembly snapshot."""

import os

import numpy as np
import pytest
import trimesh
import yaml
from lxml import etree

from cad_to_robot.assembly import SnapshotAssembly
from cad_to_robot.exceptions import ConfigFileNotFound, ConversionError
from cad_to_robot.export import ERRORS_FILENAME, MODEL_DUMP_FILENAME, convert

SNAPSHOT = {
    "features": [
        {"name": "ASM_DEF_CSYS", "type": "datum"},
        {
            "name": "SIM_BASE",
            "transform": {"xyz": [0, 0, 0], "rpy": [0, 0, 0]},
            "mass": 2.0,
            "centerOfGravity": [0, 0, 50],
            "inertia": [[2000, 0, 0], [0, 2000, 0], [0, 0, 1000]],
            "axes": {"SHOULDER": {"origin": [0, 0, 100], "direction": [0, 1, 0]}},
            "coordinateSystems": {"SCSYS_IMU": {"xyz": [0, 0, 20]}},
            "mesh": "base.stl",
        },
        {
            "name": "SIM_ARM",
            "transform": {"xyz": [0, 0, 100], "rpy": [0, 0, 0]},
            "mass": 1.0,
            "centerOfGravity": [0, 0, 150],
            "inertia": [[1000, 0, 0], [0, 1000, 0], [0, 0, 500]],
            "axes": {"SHOULDER": {"origin": [0, 0, 0], "direction": [0, 1, 0]}},
            "coordinateSystems": {
                "CSYS_ARM": {"xyz": [0, 0, 0]},
                "SCSYS_HAND": {"xyz": [0, 0, 100]},
            },
            "mesh": "arm.stl",
        },
        {
            "name": "SIM_HAND",
            "transform": {"xyz": [0, 0, 200], "rpy": [0, 0, 0]},
            "mass": 0.5,
            "centerOfGravity": [0, 0, 210],
            "inertia": [[100, 0, 0], [0, 100, 0], [0, 0, 100]],
            "coordinateSystems": {"SCSYS_HAND": {"xyz": [0, 0, 0]}},
        },
    ]
}

CONFIG = {
    "robotName": "arm_robot",
    "scale": [0.001, 0.001, 0.001],
    "rename": {"SIM_BASE": "base", "SIM_ARM": "arm", "SIM_HAND": "hand"},
    "linkFrames": [{"linkName": "arm", "frameName": "CSYS_ARM"}],
    "exportAllUseradded": True,
    "XMLBlobs": ["<gazebo><static>0</static></gazebo>"],
    "FTSensors": [
        {
            "sensorName": "wrist_ft",
            "jointName": "arm--hand",
            "frameName": "SCSYS_HAND",
            "exportFrameInURDF": True,
            "exportedFrameName": "wrist_ft_frame",
        }
    ],
}


@pytest.fixture
def snapshot(tmp_path):
    for name in ("base", "arm"):
        trimesh.creation.box(extents=[10, 10, 100]).export(str(tmp_path / f"{name}.stl"))
    filename = tmp_path / "assembly.yaml"
    filename.write_text(yaml.safe_dump(SNAPSHOT))
    return SnapshotAssembly.load(str(filename))


def test_snapshot_assembly(snapshot):
    features = snapshot.features()

    assert [feature.is_component for feature in features] == [False, True, True, True]
    arm = features[2].component()
    assert arm.name == "SIM_ARM"
    assert [axis.name for axis in arm.axes()] == ["SHOULDER"]
    np.testing.assert_allclose(arm.coordinate_systems()["SCSYS_HAND"][:3, 3], [0, 0, 100])
    np.testing.assert_allclose(snapshot.component_transform(features[2].path)[:3, 3], [0, 0, 100])
    assert arm.mass_properties().mass == pytest.approx(1.0)


def test_snapshot_missing(tmp_path):
    with pytest.raises(ConversionError):
        SnapshotAssembly.load(str(tmp_path / "missing.yaml"))


def test_convert(snapshot, write_config, write_joints, tmp_path):
    output = tmp_path / "out"
    config_file = write_config(CONFIG)
    joints_file = write_joints({"base--arm": [-90, 90, 0.1, 0.01]})

    assert convert(config_file, joints_file, snapshot, str(output))

    for filename in ("arm_robot.urdf", MODEL_DUMP_FILENAME, ERRORS_FILENAME, "SIM_BASE.stl", "SIM_ARM.stl"):
        assert os.path.exists(output / filename)

    root = etree.parse(str(output / "arm_robot.urdf")).getroot()
    joints = {joint.get("name"): joint for joint in root.findall("joint")}
    assert joints["base--arm"].get("type") == "revolute"
    assert joints["arm--hand"].get("type") == "fixed"
    assert joints["base--arm"].find("axis").get("xyz") == "0 1 0"
    np.testing.assert_allclose(
        [float(v) for v in joints["arm--hand"].find("origin").get("xyz").split()], [0, 0, 0.1]
    )

    links = [link.get("name") for link in root.findall("link")]
    assert links[:3] == ["base", "arm", "hand"]
    assert "SCSYS_IMU_USERADDED" in links
    assert "SCSYS_HAND_USERADDED" in links
    assert "wrist_ft_frame" in links
    assert joints["wrist_ft_frame_fixed_joint"].find("parent").get("link") == "arm"

    blobs = root.findall("gazebo")
    assert blobs[0].findtext("static") == "0"
    assert blobs[1].findtext("pose") == "0 0 0 0 0 0"
    assert blobs[2].find("sensor").get("type") == "force_torque"


def test_convert_with_unknown_root(snapshot, write_config, write_joints, tmp_path):
    output = tmp_path / "out"
    config_file = write_config(dict(CONFIG, root="missing"))
    joints_file = write_joints({"base--arm": [-90, 90, 0.1, 0.01]})

    assert not convert(config_file, joints_file, snapshot, str(output))
    assert not os.path.exists(output / "arm_robot.urdf")
    assert "Base link missing is not in the model" in (output / ERRORS_FILENAME).read_text()


def test_convert_missing_config(snapshot, write_joints, tmp_path):
    with pytest.raises(ConfigFileNotFound):
        convert(str(tmp_path / "missing.yaml"), write_joints({}), snapshot, str(tmp_path))
