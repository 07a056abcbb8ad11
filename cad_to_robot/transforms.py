from __future__ import annotations
import numpy as np
from .cad import CadAssembly, Component, Feature
from .exceptions import FrameNotFound
from .geometry import scale_translation


def component_to_frame(component: Component, frame_name: str) -> np.ndarray:
    """
    Transformation from the component default frame to a named coordinate
    system (identity if the name is empty), in CAD units
    """
    if frame_name == "":
        return np.eye(4)

    coordinate_systems = component.coordinate_systems()
    if frame_name not in coordinate_systems:
        raise FrameNotFound(component.name, frame_name)

    return np.array(coordinate_systems[frame_name], dtype=float).reshape(4, 4)


def root_to_frame(
    assembly: CadAssembly,
    feature: Feature,
    component: Component,
    frame_name: str,
    scale=(1.0, 1.0, 1.0),
) -> np.ndarray:
    """
    Transformation from the assembly root to the given frame of a component,
    the scale only applies to the translation
    """
    T_root_component = np.array(
        assembly.component_transform(feature.path), dtype=float
    ).reshape(4, 4)
    T_root_frame = T_root_component @ component_to_frame(component, frame_name)

    return scale_translation(T_root_frame, scale)


def part_to_frame(
    component: Component, frame_name: str, scale=(1.0, 1.0, 1.0)
) -> np.ndarray:
    """
    Transformation from the component default frame to the given frame
    """
    return scale_translation(component_to_frame(component, frame_name), scale)


def root_to_axis(
    assembly: CadAssembly,
    feature: Feature,
    component: Component,
    axis_name: str,
    T_root_link: np.ndarray,
    reverse: bool = False,
) -> np.ndarray:
    """
    Direction of a named axis of the component, expressed in the link frame
    """
    axes = {axis.name: axis for axis in component.axes()}
    if axis_name not in axes:
        raise FrameNotFound(component.name, axis_name)

    direction = axes[axis_name].direction
    norm = np.linalg.norm(direction)
    if norm < 1e-12:
        raise FrameNotFound(component.name, axis_name)

    T_root_component = np.array(
        assembly.component_transform(feature.path), dtype=float
    ).reshape(4, 4)
    direction_root = T_root_component[:3, :3] @ (direction / norm)
    direction_link = T_root_link[:3, :3].T @ direction_root

    if reverse:
        direction_link = -direction_link

    return direction_link
