from __future__ import annotations
import argparse
import logging
import os
import sys
from .assembly import SnapshotAssembly
from .cad import CadAssembly
from .config import Config
from .exceptions import ConversionError
from .exporter import build_exporter_options, export_model
from .frames import FrameResolver
from .joint_data import JointData
from .message import bright, error, success
from .robot import Robot
from .robot_builder import RobotBuilder
from .sensors import Sensorizer

MODEL_DUMP_FILENAME = "model.txt"
ERRORS_FILENAME = "model_errors.txt"


def build_robot(
    config: Config, assembly: CadAssembly, joint_data: JointData, output_directory: str
) -> tuple[Robot, RobotBuilder, Sensorizer]:
    """
    Build links and joints, then resolve the exported and sensor frames
    """
    builder = RobotBuilder(config, assembly, joint_data, output_directory)
    robot = builder.build()

    frames = FrameResolver(config, builder)
    frames.resolve()

    sensorizer = Sensorizer(config)
    sensorizer.assign_transforms(builder)
    sensorizer.add_frames(robot)

    frames.add_frames(robot)

    return robot, builder, sensorizer


def convert(
    config_file: str,
    joints_file: str,
    assembly: CadAssembly,
    output_directory: str = ".",
) -> bool:
    """
    Run a full conversion, returns True if the URDF was written
    """
    config = Config.load(config_file)
    print(success(f"* Configuration file {config_file} was loaded successfully"))
    joint_data = JointData.load(joints_file)

    os.makedirs(output_directory, exist_ok=True)

    # Exporter diagnostics are redirected to a file for this run
    handler = logging.FileHandler(
        os.path.join(output_directory, ERRORS_FILENAME), mode="w", encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    exporter_logger = logging.getLogger("cad_to_robot.exporter_urdf")
    exporter_logger.addHandler(handler)

    try:
        robot, builder, sensorizer = build_robot(
            config, assembly, joint_data, output_directory
        )

        with open(
            os.path.join(output_directory, MODEL_DUMP_FILENAME), "w", encoding="utf-8"
        ) as stream:
            stream.write(robot.to_string())

        options = build_exporter_options(config, builder.default_root, sensorizer)
        print(bright(f"* Exporting {options.robot_name} with base link {options.base_link}"))

        return export_model(
            robot,
            options,
            os.path.join(output_directory, config.robot_name + ".urdf"),
        )
    finally:
        exporter_logger.removeHandler(handler)
        handler.close()


def main():
    parser = argparse.ArgumentParser(
        prog="cad-to-robot",
        description="Convert a CAD assembly snapshot to a URDF robot description",
    )
    parser.add_argument("config", help="YAML configuration file")
    parser.add_argument("joints", help="CSV file with joint limits and dynamics")
    parser.add_argument("assembly", help="YAML assembly snapshot")
    parser.add_argument(
        "-o", "--output", default=".", help="Output directory (default: current)"
    )
    args = parser.parse_args()

    try:
        assembly = SnapshotAssembly.load(args.assembly)
        exported = convert(args.config, args.joints, assembly, args.output)
    except ConversionError as e:
        print(error(str(e)))
        print(error("Failed to run the conversion!"))
        sys.exit(1)

    if not exported:
        sys.exit(1)


if __name__ == "__main__":
    main()
