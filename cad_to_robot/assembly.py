"""
CAD host backed by an assembly snapshot: a YAML document listing the top-level
features of an assembly with their placement, mass properties, named axes and
coordinate systems, and optionally a mesh file.

    features:
      - name: SIM_BASE.prt
        type: component
        transform: {xyz: [0, 0, 0], rpy: [0, 0, 0]}
        mass: 1.2
        centerOfGravity: [0, 0, 10]
        inertia: [[1, 0, 0], [0, 1, 0], [0, 0, 1]]
        axes:
          AXIS_1: {origin: [0, 0, 0], direction: [0, 0, 1]}
        coordinateSystems:
          SCSYS_IMU: {xyz: [0, 0, 5], rpy: [0, 0, 0]}
        mesh: meshes/base.stl
      - name: ASM_DEF_CSYS
        type: datum

Transforms are given either as {xyz, rpy} or as 16 row-major numbers.
"""
from __future__ import annotations
import os
import shutil
import numpy as np
import trimesh
import yaml
from .cad import Axis, CadAssembly, Component, Feature, MassProperties
from .exceptions import ConversionError
from .geometry import xyz_rpy_to_transform
from .message import warning
from .transforms import component_to_frame


def parse_transform(value) -> np.ndarray:
    if value is None:
        return np.eye(4)
    if isinstance(value, dict):
        return xyz_rpy_to_transform(
            list(value.get("xyz", [0.0] * 3)) + list(value.get("rpy", [0.0] * 3))
        )

    return np.array(value, dtype=float).reshape(4, 4)


class SnapshotComponent(Component):
    def __init__(self, data: dict, directory: str):
        self.data: dict = data
        self.directory: str = directory

    @property
    def name(self) -> str:
        return str(self.data["name"])

    def mass_properties(self) -> MassProperties:
        return MassProperties(
            self.data.get("mass", 0.0),
            self.data.get("centerOfGravity", [0.0] * 3),
            self.data.get("inertia", np.zeros((3, 3))),
        )

    def axes(self) -> list[Axis]:
        axes = []
        for name, axis in (self.data.get("axes") or {}).items():
            axes.append(
                Axis(name, axis.get("origin", [0.0] * 3), axis.get("direction", [0, 0, 1]))
            )
        return axes

    def coordinate_systems(self) -> dict[str, np.ndarray]:
        return {
            name: parse_transform(value)
            for name, value in (self.data.get("coordinateSystems") or {}).items()
        }

    def export_mesh(self, filename: str, frame_name: str = ""):
        if "mesh" not in self.data:
            print(warning(f"WARNING: Component {self.name} has no mesh to export"))
            return

        source = os.path.join(self.directory, self.data["mesh"])
        if frame_name == "":
            shutil.copyfile(source, filename)
            return

        # Mesh vertices are expressed in the requested coordinate system
        mesh = trimesh.load(source, force="mesh")
        mesh.apply_transform(np.linalg.inv(component_to_frame(self, frame_name)))
        mesh.export(filename)


class SnapshotFeature(Feature):
    def __init__(self, index: int, data: dict, directory: str):
        self.index: int = index
        self.data: dict = data
        self.directory: str = directory

    @property
    def is_component(self) -> bool:
        return self.data.get("type", "component") == "component"

    @property
    def path(self) -> tuple:
        return (self.index,)

    def component(self) -> Component:
        return SnapshotComponent(self.data, self.directory)


class SnapshotAssembly(CadAssembly):
    def __init__(self, data: dict, directory: str = "."):
        self.data: dict = data
        self.directory: str = directory
        self.snapshot_features: list[SnapshotFeature] = [
            SnapshotFeature(index, feature, directory)
            for index, feature in enumerate(data.get("features") or [])
        ]

    @classmethod
    def load(cls, filename: str) -> SnapshotAssembly:
        if not os.path.isfile(filename):
            raise ConversionError(f"ERROR: Assembly snapshot {filename} does not exist")

        with open(filename, "r", encoding="utf-8") as stream:
            try:
                data = yaml.safe_load(stream)
            except yaml.YAMLError as e:
                raise ConversionError(f"ERROR: Unable to parse assembly snapshot: {e}")

        if not isinstance(data, dict):
            raise ConversionError(f"ERROR: Assembly snapshot {filename} should be a mapping")

        return cls(data, os.path.dirname(os.path.abspath(filename)))

    def features(self) -> list[Feature]:
        return list(self.snapshot_features)

    def component_transform(self, path: tuple) -> np.ndarray:
        return parse_transform(self.snapshot_features[path[0]].data.get("transform"))
