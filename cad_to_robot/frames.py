from __future__ import annotations
import numpy as np
from .config import Config, ExportedFrameEntry
from .exceptions import FrameNotFound, ModelError
from .geometry import inverse
from .message import bright, success, warning
from .robot import Robot
from .robot_builder import SECONDARY_CSYS_PATTERN, LinkInfo, RobotBuilder
from .transforms import part_to_frame

USERADDED_SUFFIX = "_USERADDED"


def link_to_frame(link_info: LinkInfo, frame_name: str, scale) -> np.ndarray:
    """
    Transformation from the link frame to a coordinate system of the link component
    """
    T_part_link = part_to_frame(link_info.component, link_info.link_frame_name, scale)
    T_part_frame = part_to_frame(link_info.component, frame_name, scale)

    return inverse(T_part_link) @ T_part_frame


class FrameResolver:
    """
    Resolves the exported frames, either listed in the configuration or, when
    exportAllUseradded is set, all the secondary coordinate systems of the parts
    """

    def __init__(self, config: Config, builder: RobotBuilder):
        self.config: Config = config
        self.builder: RobotBuilder = builder
        self.frames: dict[str, ExportedFrameEntry] = {}
        # Transformations from the reference links to the resolved frames
        self.T_link_frames: dict[str, np.ndarray] = {}

        if not config.export_all_useradded:
            self.frames.update(config.exported_frames)

    def resolve(self):
        for link_info in self.builder.links.values():
            if self.config.export_all_useradded:
                self.discover_frames(link_info)
            else:
                self.resolve_configured_frames(link_info)

    def discover_frames(self, link_info: LinkInfo):
        for csys_name in link_info.component.coordinate_systems():
            if SECONDARY_CSYS_PATTERN not in csys_name or csys_name in self.frames:
                continue

            self.frames[csys_name] = ExportedFrameEntry(
                csys_name, link_info.name, csys_name + USERADDED_SUFFIX
            )
            self.T_link_frames[csys_name] = link_to_frame(
                link_info, csys_name, self.config.scale
            )

    def resolve_configured_frames(self, link_info: LinkInfo):
        coordinate_systems = link_info.component.coordinate_systems()
        for frame in self.frames.values():
            if frame.reference_link != link_info.name:
                continue
            if frame.frame_name not in coordinate_systems:
                continue
            try:
                self.T_link_frames[frame.frame_name] = link_to_frame(
                    link_info, frame.frame_name, self.config.scale
                )
            except FrameNotFound as e:
                print(warning(f"WARNING: {e}"))

    def add_frames(self, robot: Robot):
        """
        Register the resolved frames as additional frames of their links
        """
        if self.frames:
            print(bright(f"* Adding {len(self.frames)} exported frames..."))

        for frame in self.frames.values():
            if frame.reference_link not in robot.links:
                print(
                    warning(
                        f"WARNING: Failed to add additional frame {frame.exported_name}, link {frame.reference_link} is not in the model"
                    )
                )
                continue
            if frame.frame_name not in self.T_link_frames:
                print(
                    warning(
                        f"WARNING: Failed to add additional frame {frame.exported_name}, {frame.frame_name} was not found on link {frame.reference_link}"
                    )
                )
                continue

            T_link_exported = self.T_link_frames[frame.frame_name] @ frame.T_additional
            try:
                robot.add_additional_frame_to_link(
                    frame.reference_link, frame.exported_name, T_link_exported
                )
            except ModelError as e:
                print(warning(f"WARNING: Failed to add additional frame {frame.exported_name}: {e}"))
                continue

            print(success(f"+ Adding frame {frame.exported_name} to {frame.reference_link}"))
