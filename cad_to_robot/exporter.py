from __future__ import annotations
from .config import Config
from .exporter_urdf import ExporterOptions, ExporterURDF
from .geometry import format_floats
from .message import success, warning
from .robot import Robot
from .sensors import Sensorizer


def placement_blob(config: Config) -> str:
    """
    Absolute placement of the model, as a Gazebo pose
    """
    pose = format_floats(list(config.origin_xyz) + list(config.origin_rpy))

    return f"<gazebo><pose>{pose}</pose></gazebo>"


def build_exporter_options(
    config: Config, default_root: str | None, sensorizer: Sensorizer
) -> ExporterOptions:
    if config.root is not None:
        base_link = str(config.root)
    else:
        base_link = default_root if default_root is not None else ""

    xml_blobs = list(config.xml_blobs)
    if config.xml_blobs or config.has_origin:
        xml_blobs.append(placement_blob(config))
    xml_blobs += sensorizer.build_ft_xml_blobs()
    xml_blobs += sensorizer.build_sensors_xml_blobs()

    return ExporterOptions(config.robot_name, base_link, xml_blobs)


def export_model(robot: Robot, options: ExporterOptions, filename: str) -> bool:
    exporter = ExporterURDF(robot, options)

    if not exporter.is_valid():
        print(warning("WARNING: Model is not valid!"))
        return False

    if not exporter.export(filename):
        print(warning("WARNING: Error exporting the URDF, see the errors log for details"))
        return False

    print(success(f"* URDF created successfully: {filename}"))
    return True
