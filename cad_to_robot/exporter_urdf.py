from __future__ import annotations
import logging
import numpy as np
from lxml import etree
from .geometry import (
    Box,
    Cylinder,
    Mesh,
    Shape,
    Sphere,
    format_floats,
    transform_to_xyz_rpy,
)
from .robot import Joint, Link, Robot

logger = logging.getLogger(__name__)

# URDF requires effort and velocity bounds on revolute joints
DEFAULT_EFFORT = 100.0
DEFAULT_VELOCITY = 100.0


class ExporterOptions:
    def __init__(
        self, robot_name: str = "robot", base_link: str = "", xml_blobs: list | None = None
    ):
        self.robot_name: str = robot_name
        self.base_link: str = base_link
        self.xml_blobs: list[str] = list(xml_blobs) if xml_blobs is not None else []


class ExporterURDF:
    """
    Serializes a Robot to URDF
    """

    def __init__(self, robot: Robot, options: ExporterOptions):
        self.robot: Robot = robot
        self.options: ExporterOptions = options

    def is_valid(self) -> bool:
        """
        The model should be a tree rooted at the base link, and the blobs
        should be valid XML
        """
        valid = True
        base_link = self.options.base_link

        if base_link not in self.robot.links:
            logger.error("Base link %s is not in the model", base_link)
            return False

        parent_joints: dict[str, list[str]] = {}
        children: dict[str, list[str]] = {name: [] for name in self.robot.links}
        for joint in self.robot.joints.values():
            parent_joints.setdefault(joint.child, []).append(joint.name)
            children[joint.parent].append(joint.child)

        if base_link in parent_joints:
            logger.error(
                "Base link %s is the child of joint %s", base_link, parent_joints[base_link][0]
            )
            valid = False
        for link_name, joint_names in parent_joints.items():
            if len(joint_names) > 1:
                logger.error(
                    "Link %s has several parent joints: %s", link_name, ", ".join(joint_names)
                )
                valid = False

        reached = set()
        to_visit = [base_link]
        while to_visit:
            link_name = to_visit.pop()
            if link_name in reached:
                continue
            reached.add(link_name)
            to_visit.extend(children[link_name])
        for link_name in self.robot.links:
            if link_name not in reached:
                logger.error("Link %s is not connected to base link %s", link_name, base_link)
                valid = False

        for blob in self.options.xml_blobs:
            try:
                etree.fromstring(blob.strip())
            except etree.XMLSyntaxError as e:
                logger.error("Invalid XML blob %r: %s", blob, e)
                valid = False

        return valid

    def export(self, filename: str) -> bool:
        """
        Writes the URDF, the model is expected to have passed is_valid()
        """
        urdf = etree.tostring(
            self.to_xml(), pretty_print=True, xml_declaration=True, encoding="utf-8"
        )
        try:
            with open(filename, "wb") as stream:
                stream.write(urdf)
        except OSError as e:
            logger.error("Unable to write %s: %s", filename, e)
            return False

        return True

    def to_xml(self) -> etree._Element:
        robot = etree.Element("robot", name=self.options.robot_name)

        link_names = [self.options.base_link] + [
            name for name in self.robot.links if name != self.options.base_link
        ]
        for link_name in link_names:
            robot.append(self.link_xml(self.robot.links[link_name]))

        for joint in self.robot.joints.values():
            robot.append(self.joint_xml(joint))

        for link_name in link_names:
            for frame_name, T_link_frame in self.robot.additional_frames[link_name].items():
                etree.SubElement(robot, "link", name=frame_name)
                joint = etree.SubElement(
                    robot, "joint", name=frame_name + "_fixed_joint", type="fixed"
                )
                self.append_origin(joint, T_link_frame)
                etree.SubElement(joint, "parent", link=link_name)
                etree.SubElement(joint, "child", link=frame_name)

        for blob in self.options.xml_blobs:
            robot.append(etree.fromstring(blob.strip()))

        return robot

    def append_origin(self, element: etree._Element, T: np.ndarray):
        xyz, rpy = transform_to_xyz_rpy(T)
        etree.SubElement(element, "origin", xyz=format_floats(xyz), rpy=format_floats(rpy))

    def link_xml(self, link: Link) -> etree._Element:
        element = etree.Element("link", name=link.name)

        inertia = link.inertia
        inertial = etree.SubElement(element, "inertial")
        etree.SubElement(
            inertial, "origin", xyz=format_floats(inertia.com), rpy="0 0 0"
        )
        etree.SubElement(inertial, "mass", value=format_floats([inertia.mass]))
        I = inertia.inertia_com
        etree.SubElement(
            inertial,
            "inertia",
            ixx=format_floats([I[0, 0]]),
            ixy=format_floats([I[0, 1]]),
            ixz=format_floats([I[0, 2]]),
            iyy=format_floats([I[1, 1]]),
            iyz=format_floats([I[1, 2]]),
            izz=format_floats([I[2, 2]]),
        )

        for k, shape in enumerate(link.visuals):
            visual = etree.SubElement(element, "visual")
            self.append_shape(visual, shape)
            if isinstance(shape, Mesh):
                material = etree.SubElement(
                    visual, "material", name=f"{link.name}_material_{k}"
                )
                etree.SubElement(material, "color", rgba=format_floats(shape.color))

        for shape in link.collisions:
            collision = etree.SubElement(element, "collision")
            self.append_shape(collision, shape)

        return element

    def append_shape(self, element: etree._Element, shape: Shape):
        self.append_origin(element, shape.T_link_shape)
        geometry = etree.SubElement(element, "geometry")

        if isinstance(shape, Mesh):
            etree.SubElement(
                geometry, "mesh", filename=shape.filename, scale=format_floats(shape.scale)
            )
        elif isinstance(shape, Box):
            etree.SubElement(geometry, "box", size=format_floats(shape.size))
        elif isinstance(shape, Cylinder):
            etree.SubElement(
                geometry,
                "cylinder",
                radius=format_floats([shape.radius]),
                length=format_floats([shape.length]),
            )
        elif isinstance(shape, Sphere):
            etree.SubElement(geometry, "sphere", radius=format_floats([shape.radius]))
        else:
            raise ValueError(f"Unsupported shape {type(shape).__name__}")

    def joint_xml(self, joint: Joint) -> etree._Element:
        element = etree.Element("joint", name=joint.name, type=joint.joint_type)
        self.append_origin(element, joint.T_parent_child)
        etree.SubElement(element, "parent", link=joint.parent)
        etree.SubElement(element, "child", link=joint.child)

        if joint.joint_type == Joint.REVOLUTE:
            etree.SubElement(element, "axis", xyz=format_floats(joint.axis_in_child()))
            lower, upper = joint.limits
            etree.SubElement(
                element,
                "limit",
                lower=format_floats([lower]),
                upper=format_floats([upper]),
                effort=format_floats([DEFAULT_EFFORT]),
                velocity=format_floats([DEFAULT_VELOCITY]),
            )
            etree.SubElement(
                element,
                "dynamics",
                damping=format_floats([joint.damping]),
                friction=format_floats([joint.friction]),
            )

        return element
