"""
Read-only interface to the CAD host.

The converter never talks to a CAD program directly, it only uses the queries
declared here. All lengths are in CAD units, the configured scale is applied by
the converter.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
import numpy as np


class MassProperties:
    """
    Mass properties of a component, as reported by the CAD host.

    center_of_gravity is expressed in the assembly root frame, inertia_tensor is
    the 3x3 inertia about the center of gravity, with axes parallel to the
    link frame.
    """

    def __init__(self, mass: float, center_of_gravity, inertia_tensor):
        self.mass: float = float(mass)
        self.center_of_gravity: np.ndarray = np.array(center_of_gravity, dtype=float)
        self.inertia_tensor: np.ndarray = np.array(inertia_tensor, dtype=float).reshape(
            3, 3
        )


class Axis:
    """
    A named axis, expressed in the component default frame
    """

    def __init__(self, name: str, origin, direction):
        self.name: str = name
        self.origin: np.ndarray = np.array(origin, dtype=float)
        self.direction: np.ndarray = np.array(direction, dtype=float)


class Component(ABC):
    """
    A CAD model (part or sub-assembly) referenced by a component feature
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Full qualified name, i.e "SIM_BASE.prt"
        """

    @abstractmethod
    def mass_properties(self) -> MassProperties:
        pass

    @abstractmethod
    def axes(self) -> list[Axis]:
        pass

    @abstractmethod
    def coordinate_systems(self) -> dict[str, np.ndarray]:
        """
        Named coordinate systems, as transformations from the component default
        frame to the coordinate system
        """

    @abstractmethod
    def export_mesh(self, filename: str, frame_name: str = ""):
        """
        Export the geometry to a mesh file, expressed in the given coordinate
        system (the default frame if empty)
        """


class Feature(ABC):
    """
    Top-level assembly feature
    """

    @property
    @abstractmethod
    def is_component(self) -> bool:
        pass

    @property
    @abstractmethod
    def path(self) -> tuple:
        """
        Assembly path (feature ids) leading to the component
        """

    @abstractmethod
    def component(self) -> Component:
        pass


class CadAssembly(ABC):
    @abstractmethod
    def features(self) -> list[Feature]:
        """
        Top-level assembly features, in CAD traversal order
        """

    @abstractmethod
    def component_transform(self, path: tuple) -> np.ndarray:
        """
        Absolute transformation from the assembly root to the component default
        frame
        """
