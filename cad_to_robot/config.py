from __future__ import annotations
import os
from contextlib import contextmanager
import numpy as np
import yaml
from .exceptions import ConfigFileNotFound, ConfigParseError
from .geometry import DEFAULT_COLOR, Shape, shape_from_config, xyz_rpy_to_transform
from .message import warning


class ExportedFrameEntry:
    """
    An exportedFrames entry of the configuration
    """

    def __init__(
        self,
        frame_name: str,
        reference_link: str,
        exported_name: str,
        T_additional: np.ndarray | None = None,
    ):
        self.frame_name: str = frame_name
        self.reference_link: str = reference_link
        self.exported_name: str = exported_name
        if T_additional is None:
            T_additional = np.eye(4)
        self.T_additional: np.ndarray = T_additional


class Config:
    def __init__(self, data: dict | None = None, filename: str = ""):
        self.data: dict = data if data is not None else {}
        self.filename: str = filename

        # Robot name
        self.robot_name: str = str(self.get("robotName", "robot"))
        self.root: str | None = self.get("root")

        # Geometry
        self.scale: np.ndarray = self.get_vector("scale", [1.0, 1.0, 1.0], 3)
        self.origin_xyz: np.ndarray = self.get_vector("originXYZ", [0.0] * 3, 3)
        self.origin_rpy: np.ndarray = self.get_vector("originRPY", [0.0] * 3, 3)
        self.has_origin: bool = (
            self.get("originXYZ") is not None or self.get("originRPY") is not None
        )

        # Names
        self.renames: dict = self.get("rename", {}) or {}
        self.link_frames: dict[str, str] = {}
        with self.entries("linkFrames") as entries:
            for entry in entries:
                self.link_frames[entry["linkName"]] = entry["frameName"]

        # Dynamics overrides
        self.assigned_masses: dict = self.get("assignedMasses", {}) or {}
        self.assigned_inertias: dict[str, np.ndarray] = {}
        with self.entries("assignedInertias") as entries:
            for entry in entries:
                self.assigned_inertias[entry["linkName"]] = np.array(
                    [entry["xx"], entry["yy"], entry["zz"]], dtype=float
                )

        # Visual and collision
        self.assigned_colors: dict = self.get("assignedColors", {}) or {}
        self.assigned_collision_geometry: dict[str, Shape] = {}
        with self.entries("assignedCollisionGeometry") as entries:
            for entry in entries:
                self.assigned_collision_geometry[entry["linkName"]] = shape_from_config(
                    entry["geometricShape"]
                )

        # Meshes
        self.filename_format: str = str(self.get("filenameformat") or "%s")
        if "%s" not in self.filename_format:
            raise ConfigParseError(
                f'filenameformat "{self.filename_format}" should contain "%s"'
            )
        self.string_to_remove: str | None = self.get("stringToRemoveFromMeshFileName")
        self.force_lowercase: bool = bool(self.get("forcelowercase", False))

        # Frames
        self.export_all_useradded: bool = bool(self.get("exportAllUseradded", False))
        self.exported_frames: dict[str, ExportedFrameEntry] = {}
        with self.entries("exportedFrames") as entries:
            for entry in entries:
                T_additional = None
                if "additionalTransformation" in entry:
                    T_additional = xyz_rpy_to_transform(entry["additionalTransformation"])
                self.exported_frames[entry["frameName"]] = ExportedFrameEntry(
                    entry["frameName"],
                    entry["frameReferenceLink"],
                    entry["exportedFrameName"],
                    T_additional,
                )

        # Joints
        self.reverse_rotation_axes = self.get("reverseRotationAxis", "") or ""

        # Export
        self.xml_blobs: list[str] = list(self.get("XMLBlobs", []) or [])

    @classmethod
    def load(cls, filename: str) -> Config:
        """
        Load the configuration from a YAML file
        """
        if not os.path.isfile(filename):
            raise ConfigFileNotFound(filename)

        with open(filename, "r", encoding="utf-8") as stream:
            try:
                data = yaml.safe_load(stream)
            except yaml.YAMLError as e:
                raise ConfigParseError(str(e))

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigParseError(f"{filename} should contain a mapping")

        return cls(data, filename)

    def get(self, name: str, default=None):
        return self.data.get(name, default)

    @contextmanager
    def entries(self, name: str):
        """
        Yields the entries listed under a key, any malformed entry being
        reported as a parse error
        """
        try:
            yield self.get(name, []) or []
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigParseError(f"bad {name} entry: {e}")

    def get_vector(self, name: str, default: list, size: int) -> np.ndarray:
        value = self.get(name, default)
        try:
            vector = np.array(value, dtype=float)
        except (TypeError, ValueError):
            raise ConfigParseError(f"{name} should be a list of {size} numbers")
        if vector.shape != (size,):
            raise ConfigParseError(f"{name} should be a list of {size} numbers")

        return vector

    def has_rename(self, name: str) -> bool:
        return name in self.renames

    def rename(self, name: str) -> str:
        """
        Final name for a raw CAD element name, falls back to the raw name
        """
        if name in self.renames:
            return str(self.renames[name])

        print(
            warning(
                f"WARNING: Element {name} is not present in the rename table of the configuration"
            )
        )
        return name

    def link_frame(self, link_name: str) -> str:
        return self.link_frames.get(link_name, "")

    def assigned_mass(self, link_name: str) -> float | None:
        if link_name in self.assigned_masses:
            return float(self.assigned_masses[link_name])
        return None

    def assigned_inertia(self, link_name: str) -> np.ndarray | None:
        return self.assigned_inertias.get(link_name)

    def collision_geometry(self, link_name: str) -> Shape | None:
        return self.assigned_collision_geometry.get(link_name)

    def color(self, link_name: str) -> np.ndarray:
        color = np.array(DEFAULT_COLOR, dtype=float)
        if link_name in self.assigned_colors:
            values = self.assigned_colors[link_name]
            color[: len(values)] = values

        return color

    def reverse_rotation_axis(self, joint_name: str) -> bool:
        """
        Checks if the axis of a given joint should be reversed. The setting is
        either a string where joint names are looked up, or a list of names.
        """
        if isinstance(self.reverse_rotation_axes, str):
            return joint_name != "" and joint_name in self.reverse_rotation_axes

        return joint_name in self.reverse_rotation_axes
