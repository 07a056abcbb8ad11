from __future__ import annotations
import numpy as np
from .cad import MassProperties
from .config import Config
from .geometry import inverse


class SpatialInertia:
    """
    Mass, center of mass (in the link frame) and rotational inertia about the
    center of mass
    """

    def __init__(self, mass: float, com, inertia_com):
        self.mass: float = float(mass)
        self.com: np.ndarray = np.array(com, dtype=float)
        self.inertia_com: np.ndarray = np.array(inertia_com, dtype=float).reshape(3, 3)

    @classmethod
    def zero(cls) -> SpatialInertia:
        return cls(0.0, np.zeros(3), np.zeros((3, 3)))

    def inertia_origin(self) -> np.ndarray:
        """
        Rotational inertia about the link frame origin (parallel axis theorem)
        """
        c = self.com
        return self.inertia_com + self.mass * (np.dot(c, c) * np.eye(3) - np.outer(c, c))

    def is_physically_consistent(self, tolerance: float = 1e-12) -> bool:
        if self.mass < 0:
            return False

        inertia = self.inertia_com
        if not np.allclose(inertia, inertia.T, atol=tolerance):
            return False

        # Principal moments must be positive and satisfy the triangle inequality
        moments = np.linalg.eigvalsh((inertia + inertia.T) / 2)
        if np.any(moments < -tolerance):
            return False
        total = np.sum(moments)
        for moment in moments:
            if moment > total - moment + tolerance:
                return False

        return True


def compute_spatial_inertia(
    mass_properties: MassProperties,
    T_root_link: np.ndarray,
    link_name: str,
    config: Config,
) -> SpatialInertia:
    """
    Spatial inertia of a link from CAD mass properties, applying the scale and
    the manual overrides (mass, diagonal inertia) of the configuration
    """
    scale = config.scale

    com_root = mass_properties.center_of_gravity * scale
    com_link = (inverse(T_root_link) @ np.append(com_root, 1.0))[:3]

    inertia = mass_properties.inertia_tensor * np.outer(scale, scale)
    assigned_inertia = config.assigned_inertia(link_name)
    if assigned_inertia is not None:
        for k in range(3):
            inertia[k, k] = assigned_inertia[k]

    mass = config.assigned_mass(link_name)
    if mass is None:
        mass = mass_properties.mass

    return SpatialInertia(mass, com_link, inertia)
