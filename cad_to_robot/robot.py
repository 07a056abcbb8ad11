from __future__ import annotations
import numpy as np
from .exceptions import ModelError
from .geometry import Shape, Mesh, Box, Cylinder, Sphere, transform_to_xyz_rpy
from .inertia import SpatialInertia


class Link:
    def __init__(self, name: str, inertia: SpatialInertia | None = None):
        self.name: str = name
        self.inertia: SpatialInertia = (
            inertia if inertia is not None else SpatialInertia.zero()
        )
        self.visuals: list[Shape] = []
        self.collisions: list[Shape] = []


class Joint:
    """
    A joint between two links
    """

    REVOLUTE = "revolute"
    FIXED = "fixed"

    def __init__(
        self,
        name: str,
        joint_type: str,
        parent: str,
        child: str,
        T_parent_child: np.ndarray,
        axis: np.ndarray | None = None,
        limits: tuple | None = None,
        damping: float = 0.0,
        friction: float = 0.0,
    ):
        self.name: str = name
        self.joint_type: str = joint_type
        self.parent: str = parent
        self.child: str = child
        self.T_parent_child: np.ndarray = T_parent_child
        # Revolute only, the axis is expressed in the parent link frame and
        # goes through the child frame origin
        self.axis: np.ndarray | None = axis
        self.limits: tuple | None = limits
        self.damping: float = damping
        self.friction: float = friction

    def axis_in_child(self) -> np.ndarray:
        return self.T_parent_child[:3, :3].T @ self.axis


class Robot:
    """
    Kinematic/dynamic model assembled by a conversion run
    """

    def __init__(self, name: str = "robot"):
        self.name: str = name
        self.links: dict[str, Link] = {}
        self.joints: dict[str, Joint] = {}
        # link name -> {frame name: T_link_frame}
        self.additional_frames: dict[str, dict[str, np.ndarray]] = {}

    def frame_exists(self, name: str) -> bool:
        if name in self.links:
            return True
        for frames in self.additional_frames.values():
            if name in frames:
                return True
        return False

    def add_link(self, link: Link):
        if self.frame_exists(link.name):
            raise ModelError(f"ERROR: Duplicate link name {link.name}")
        self.links[link.name] = link
        self.additional_frames[link.name] = {}

    def add_joint(self, joint: Joint):
        if joint.name in self.joints:
            raise ModelError(f"ERROR: Failed to add joint {joint.name}, duplicate name")
        for link_name in (joint.parent, joint.child):
            if link_name not in self.links:
                raise ModelError(
                    f"ERROR: Failed to add joint {joint.name}, unknown link {link_name}"
                )
        if joint.parent == joint.child:
            raise ModelError(
                f"ERROR: Failed to add joint {joint.name}, parent and child are both {joint.parent}"
            )
        self.joints[joint.name] = joint

    def add_additional_frame_to_link(
        self, link_name: str, frame_name: str, T_link_frame: np.ndarray
    ):
        if link_name not in self.links:
            raise ModelError(f"ERROR: Link {link_name} is not in the model")
        if self.frame_exists(frame_name):
            raise ModelError(f"ERROR: Frame {frame_name} already exists in the model")
        self.additional_frames[link_name][frame_name] = T_link_frame

    def first_attached_link(self, joint_name: str) -> str:
        if joint_name not in self.joints:
            raise ModelError(f"ERROR: Joint {joint_name} is not in the model")
        return self.joints[joint_name].parent

    def to_string(self) -> str:
        """
        Human readable dump of the model
        """
        lines = [f"Robot: {self.name}", f"Links ({len(self.links)}):"]
        for link in self.links.values():
            inertia = link.inertia
            lines.append(f"  [{link.name}]")
            lines.append(f"    mass: {inertia.mass:.6g}")
            lines.append(f"    com: {np.array2string(inertia.com, precision=6)}")
            lines.append(
                "    inertia (com): "
                + np.array2string(inertia.inertia_com.flatten(), precision=6)
            )
            lines.append(
                "    inertia (origin): "
                + np.array2string(inertia.inertia_origin().flatten(), precision=6)
            )
            for kind, shapes in (("visual", link.visuals), ("collision", link.collisions)):
                for shape in shapes:
                    lines.append(f"    {kind}: {describe_shape(shape)}")

        lines.append(f"Joints ({len(self.joints)}):")
        for joint in self.joints.values():
            xyz, rpy = transform_to_xyz_rpy(joint.T_parent_child)
            lines.append(
                f"  [{joint.name}] {joint.joint_type} {joint.parent} -> {joint.child}"
            )
            lines.append(
                f"    xyz: {np.array2string(xyz, precision=6)} rpy: {np.array2string(rpy, precision=6)}"
            )
            if joint.joint_type == Joint.REVOLUTE:
                lines.append(f"    axis: {np.array2string(joint.axis, precision=6)}")
                if joint.limits is not None:
                    lines.append(f"    limits: [{joint.limits[0]:.6g}, {joint.limits[1]:.6g}]")
                lines.append(f"    damping: {joint.damping:.6g} friction: {joint.friction:.6g}")

        lines.append("Additional frames:")
        for link_name, frames in self.additional_frames.items():
            for frame_name, T in frames.items():
                xyz, rpy = transform_to_xyz_rpy(T)
                lines.append(
                    f"  [{frame_name}] on {link_name} xyz: {np.array2string(xyz, precision=6)} rpy: {np.array2string(rpy, precision=6)}"
                )

        return "\n".join(lines) + "\n"


def describe_shape(shape: Shape) -> str:
    if isinstance(shape, Mesh):
        return f"mesh {shape.filename}"
    elif isinstance(shape, Box):
        return f"box {np.array2string(shape.size, precision=6)}"
    elif isinstance(shape, Cylinder):
        return f"cylinder r={shape.radius:.6g} l={shape.length:.6g}"
    elif isinstance(shape, Sphere):
        return f"sphere r={shape.radius:.6g}"
    return type(shape).__name__
