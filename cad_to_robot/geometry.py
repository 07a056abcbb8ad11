from __future__ import annotations
import numpy as np
from scipy.spatial.transform import Rotation

DEFAULT_COLOR = [0.5, 0.5, 0.5, 1.0]


def transform(position=(0.0, 0.0, 0.0), rotation: np.ndarray | None = None) -> np.ndarray:
    """
    Build a 4x4 homogeneous transformation from a position and a rotation matrix
    """
    T = np.eye(4)
    if rotation is not None:
        T[:3, :3] = rotation
    T[:3, 3] = position

    return T


def inverse(T: np.ndarray) -> np.ndarray:
    """
    Inverse of a rigid transformation, without a generic matrix inversion
    """
    T_inv = np.eye(4)
    T_inv[:3, :3] = T[:3, :3].T
    T_inv[:3, 3] = -T[:3, :3].T @ T[:3, 3]

    return T_inv


def rpy_to_rotation(rpy) -> np.ndarray:
    # URDF convention: fixed axes X, then Y, then Z
    return Rotation.from_euler("xyz", rpy).as_matrix()


def rotation_to_rpy(R: np.ndarray) -> np.ndarray:
    return Rotation.from_matrix(R).as_euler("xyz")


def xyz_rpy_to_transform(xyz_rpy) -> np.ndarray:
    """
    Convert [x, y, z, roll, pitch, yaw] to a transformation matrix
    """
    if len(xyz_rpy) != 6:
        raise ValueError(f"Expected 6 values (x y z r p y), got {len(xyz_rpy)}")

    return transform(xyz_rpy[:3], rpy_to_rotation(xyz_rpy[3:]))


def transform_to_xyz_rpy(T: np.ndarray) -> tuple:
    return T[:3, 3].copy(), rotation_to_rpy(T[:3, :3])


def scale_translation(T: np.ndarray, scale) -> np.ndarray:
    """
    Apply a per-axis scale factor to the translation of T, rotation is untouched
    """
    T = T.copy()
    T[:3, 3] = T[:3, 3] * np.asarray(scale, dtype=float)

    return T


class Shape:
    """
    Base class for geometries attached to a link
    """

    def __init__(self, T_link_shape: np.ndarray | None = None):
        if T_link_shape is None:
            T_link_shape = np.eye(4)
        self.T_link_shape: np.ndarray = T_link_shape


class Mesh(Shape):
    def __init__(
        self,
        filename: str,
        color=DEFAULT_COLOR,
        scale=(1.0, 1.0, 1.0),
        T_link_shape: np.ndarray | None = None,
    ):
        super().__init__(T_link_shape)
        self.filename: str = filename
        self.color: np.ndarray = np.array(color, dtype=float)
        self.scale: np.ndarray = np.array(scale, dtype=float)


class Box(Shape):
    def __init__(self, size, T_link_shape: np.ndarray | None = None):
        super().__init__(T_link_shape)
        self.size: np.ndarray = np.array(size, dtype=float)


class Cylinder(Shape):
    def __init__(self, radius: float, length: float, T_link_shape: np.ndarray | None = None):
        super().__init__(T_link_shape)
        self.radius: float = radius
        self.length: float = length


class Sphere(Shape):
    def __init__(self, radius: float, T_link_shape: np.ndarray | None = None):
        super().__init__(T_link_shape)
        self.radius: float = radius


def shape_from_config(entry: dict) -> Shape:
    """
    Build a primitive from an assignedCollisionGeometry "geometricShape" entry
    """
    shape = str(entry.get("shape", "")).lower()
    T_link_shape = xyz_rpy_to_transform(entry.get("origin", [0.0] * 6))

    if shape == "box":
        return Box(entry["size"], T_link_shape)
    elif shape == "cylinder":
        return Cylinder(float(entry["radius"]), float(entry["length"]), T_link_shape)
    elif shape == "sphere":
        return Sphere(float(entry["radius"]), T_link_shape)
    else:
        raise ValueError(f"Unknown collision shape '{entry.get('shape')}'")


def format_floats(values) -> str:
    return " ".join(f"{float(value):.12g}" for value in values)


def pose_string(T: np.ndarray) -> str:
    """
    "x y z roll pitch yaw" representation of a transformation
    """
    xyz, rpy = transform_to_xyz_rpy(T)

    return format_floats(list(xyz) + list(rpy))
