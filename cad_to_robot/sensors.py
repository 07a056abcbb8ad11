from __future__ import annotations
import numpy as np
from lxml import etree
from .config import Config
from .exceptions import FrameNotFound, ModelError
from .frames import link_to_frame
from .geometry import inverse, pose_string
from .message import success, warning
from .robot import Robot
from .robot_builder import RobotBuilder

DEFAULT_UPDATE_RATE = "100"


class Sensor:
    """
    A sensor (IMU, camera...) attached to a link
    """

    def __init__(self, entry: dict):
        self.name: str = str(entry["sensorName"])
        self.sensor_type: str = str(entry.get("sensorType", "imu"))
        self.link_name: str = str(entry["linkName"])
        self.frame_name: str = str(entry.get("frameName", ""))
        self.export_frame: bool = bool(entry.get("exportFrameInURDF", False))
        self.exported_frame_name: str = str(entry.get("exportedFrameName", self.name))
        self.update_rate: str = str(entry.get("updateRate", DEFAULT_UPDATE_RATE))
        self.blobs: list[str] = list(entry.get("sensorBlobs", []) or [])
        self.T_link_sensor: np.ndarray | None = None


class FTSensor:
    """
    A force-torque sensor measuring the wrench through a joint
    """

    def __init__(self, entry: dict):
        self.name: str = str(entry["sensorName"])
        self.joint_name: str = str(entry["jointName"])
        self.frame_name: str = str(entry.get("frameName", ""))
        self.frame: str = str(entry.get("frame", "sensor"))
        self.child_to_parent: bool = bool(entry.get("directionChildToParent", True))
        self.export_frame: bool = bool(entry.get("exportFrameInURDF", False))
        self.exported_frame_name: str = str(entry.get("exportedFrameName", self.name))
        self.update_rate: str = str(entry.get("updateRate", DEFAULT_UPDATE_RATE))
        self.blobs: list[str] = list(entry.get("sensorBlobs", []) or [])
        self.T_parent_sensor: np.ndarray | None = None
        self.T_child_sensor: np.ndarray | None = None


class Sensorizer:
    def __init__(self, config: Config):
        self.config: Config = config
        self.sensors: list[Sensor] = []
        self.ft_sensors: list[FTSensor] = []

        with config.entries("Sensors") as entries:
            for entry in entries:
                self.sensors.append(Sensor(entry))
        with config.entries("FTSensors") as entries:
            for entry in entries:
                self.ft_sensors.append(FTSensor(entry))

    def assign_transforms(self, builder: RobotBuilder):
        """
        Compute the sensors placements from the built links and joints
        """
        scale = self.config.scale

        for sensor in self.sensors:
            link_info = builder.link_by_name(sensor.link_name)
            if link_info is None:
                print(
                    warning(
                        f"WARNING: Sensor {sensor.name} references link {sensor.link_name} which is not in the model"
                    )
                )
                continue
            try:
                sensor.T_link_sensor = link_to_frame(link_info, sensor.frame_name, scale)
            except FrameNotFound as e:
                print(warning(f"WARNING: Sensor {sensor.name}: {e}"))

        for ft_sensor in self.ft_sensors:
            joint = builder.robot.joints.get(ft_sensor.joint_name)
            if joint is None:
                print(
                    warning(
                        f"WARNING: FT sensor {ft_sensor.name} references joint {ft_sensor.joint_name} which is not in the model"
                    )
                )
                continue

            parent = builder.link_by_name(joint.parent)
            child = builder.link_by_name(joint.child)
            # The sensor frame is looked up on the parent, then on the child
            if ft_sensor.frame_name in parent.component.coordinate_systems():
                T_parent_sensor = link_to_frame(parent, ft_sensor.frame_name, scale)
            elif ft_sensor.frame_name in child.component.coordinate_systems():
                T_parent_sensor = joint.T_parent_child @ link_to_frame(
                    child, ft_sensor.frame_name, scale
                )
            else:
                print(
                    warning(
                        f"WARNING: FT sensor {ft_sensor.name}: frame {ft_sensor.frame_name} not found on {joint.parent} nor {joint.child}"
                    )
                )
                continue

            ft_sensor.T_parent_sensor = T_parent_sensor
            ft_sensor.T_child_sensor = inverse(joint.T_parent_child) @ T_parent_sensor

    def add_frames(self, robot: Robot):
        """
        Add the frames of sensors flagged with exportFrameInURDF
        """
        for sensor in self.sensors:
            if not sensor.export_frame or sensor.T_link_sensor is None:
                continue
            self.add_frame(
                robot, sensor.link_name, sensor.exported_frame_name, sensor.T_link_sensor
            )

        for ft_sensor in self.ft_sensors:
            if not ft_sensor.export_frame or ft_sensor.T_parent_sensor is None:
                continue
            try:
                link_name = robot.first_attached_link(ft_sensor.joint_name)
            except ModelError as e:
                print(
                    warning(
                        f"WARNING: Failed to add additional frame, ftsensor {ft_sensor.name}: {e}"
                    )
                )
                continue
            self.add_frame(
                robot, link_name, ft_sensor.exported_frame_name, ft_sensor.T_parent_sensor
            )

    def add_frame(self, robot: Robot, link_name: str, frame_name: str, T: np.ndarray):
        try:
            robot.add_additional_frame_to_link(link_name, frame_name, T)
        except ModelError as e:
            print(warning(f"WARNING: Failed to add additional frame {frame_name}: {e}"))
            return
        print(success(f"+ Adding sensor frame {frame_name} to {link_name}"))

    def append_blobs(self, sensor_element: etree._Element, blobs: list[str], name: str):
        for blob in blobs:
            try:
                sensor_element.append(etree.fromstring(blob.strip()))
            except etree.XMLSyntaxError as e:
                print(warning(f"WARNING: Ignoring invalid XML blob of sensor {name}: {e}"))

    def build_sensors_xml_blobs(self) -> list[str]:
        blobs = []
        for sensor in self.sensors:
            if sensor.T_link_sensor is None:
                continue
            gazebo = etree.Element("gazebo", reference=sensor.link_name)
            element = etree.SubElement(
                gazebo, "sensor", name=sensor.name, type=sensor.sensor_type
            )
            etree.SubElement(element, "always_on").text = "1"
            etree.SubElement(element, "update_rate").text = sensor.update_rate
            etree.SubElement(element, "pose").text = pose_string(sensor.T_link_sensor)
            self.append_blobs(element, sensor.blobs, sensor.name)
            blobs.append(etree.tostring(gazebo, encoding="unicode"))

        return blobs

    def build_ft_xml_blobs(self) -> list[str]:
        blobs = []
        for ft_sensor in self.ft_sensors:
            if ft_sensor.T_child_sensor is None:
                continue
            gazebo = etree.Element("gazebo", reference=ft_sensor.joint_name)
            element = etree.SubElement(
                gazebo, "sensor", name=ft_sensor.name, type="force_torque"
            )
            etree.SubElement(element, "always_on").text = "1"
            etree.SubElement(element, "update_rate").text = ft_sensor.update_rate
            force_torque = etree.SubElement(element, "force_torque")
            etree.SubElement(force_torque, "frame").text = ft_sensor.frame
            etree.SubElement(force_torque, "measure_direction").text = (
                "child_to_parent" if ft_sensor.child_to_parent else "parent_to_child"
            )
            if ft_sensor.frame == "sensor":
                etree.SubElement(element, "pose").text = pose_string(
                    ft_sensor.T_child_sensor
                )
            self.append_blobs(element, ft_sensor.blobs, ft_sensor.name)
            blobs.append(etree.tostring(gazebo, encoding="unicode"))

        return blobs
