from __future__ import annotations
import os
import numpy as np
from .cad import CadAssembly, Component, Feature
from .config import Config
from .exceptions import ConversionError, ModelError
from .geometry import Mesh, inverse
from .inertia import compute_spatial_inertia
from .joint_data import JointData
from .message import bright, dim, success, warning
from .robot import Joint, Link, Robot
from .transforms import root_to_axis, root_to_frame

# Coordinate systems containing this pattern define fixed joints and user frames,
# other ones (CSYS, ASM_CSYS...) are ignored
SECONDARY_CSYS_PATTERN = "SCSYS"
MESH_EXTENSION = ".stl"


class LinkInfo:
    """
    A link discovered while traversing the assembly
    """

    def __init__(
        self,
        raw_name: str,
        name: str,
        feature: Feature,
        component: Component,
        T_root_link: np.ndarray,
        link_frame_name: str,
    ):
        self.raw_name: str = raw_name
        self.name: str = name
        self.feature: Feature = feature
        self.component: Component = component
        self.T_root_link: np.ndarray = T_root_link
        self.link_frame_name: str = link_frame_name


class JointCandidate:
    """
    A named axis or coordinate system shared by two components. The parent is
    the first component where the name is seen, the child the second one.
    """

    def __init__(self, name: str, joint_type: str, parent: str):
        self.name: str = name
        self.joint_type: str = joint_type
        self.parent: str = parent
        self.child: str = ""

    def complete(self) -> bool:
        return self.child != ""


class RobotBuilder:
    """
    Builds the robot links and joints from the assembly components.

    Components have to be listed with the parent of each joint before its
    child: the first component carrying a joint axis (or secondary coordinate
    system) becomes the parent link of that joint.
    """

    def __init__(
        self,
        config: Config,
        assembly: CadAssembly,
        joint_data: JointData,
        output_directory: str = ".",
    ):
        self.config: Config = config
        self.assembly: CadAssembly = assembly
        self.joint_data: JointData = joint_data
        self.output_directory: str = output_directory
        self.robot: Robot = Robot(config.robot_name)

        # Links, indexed by raw CAD name
        self.links: dict[str, LinkInfo] = {}
        # Joint candidates, indexed by axis / coordinate system name
        self.revolute_candidates: dict[str, JointCandidate] = {}
        self.fixed_candidates: dict[str, JointCandidate] = {}
        # Final name of the first traversed link
        self.default_root: str | None = None

    def build(self) -> Robot:
        components = [
            feature for feature in self.assembly.features() if feature.is_component
        ]
        if len(components) == 0:
            raise ConversionError("ERROR: There are no components in the assembly")

        print(bright(f"* Processing {len(components)} components..."))
        for feature in components:
            self.add_link(feature)

        print(bright("* Adding joints..."))
        for candidates in (self.revolute_candidates, self.fixed_candidates):
            for candidate in candidates.values():
                self.add_joint(candidate)

        self.check_ordering()

        return self.robot

    def link_by_name(self, name: str) -> LinkInfo | None:
        """
        Retrieve a link from its final name
        """
        for link_info in self.links.values():
            if link_info.name == name:
                return link_info
        return None

    def add_link(self, feature: Feature):
        component = feature.component()
        raw_name = component.name
        if raw_name in self.links:
            raise ModelError(f"ERROR: Component {raw_name} is listed twice")

        name = self.config.rename(raw_name)
        link_frame_name = self.config.link_frame(name)
        T_root_link = root_to_frame(
            self.assembly, feature, component, link_frame_name, self.config.scale
        )

        inertia = compute_spatial_inertia(
            component.mass_properties(), T_root_link, name, self.config
        )
        if not inertia.is_physically_consistent():
            print(warning(f"WARNING: {raw_name} is NOT physically consistent!"))

        self.links[raw_name] = LinkInfo(
            raw_name, name, feature, component, T_root_link, link_frame_name
        )
        if self.default_root is None:
            self.default_root = name

        link = Link(name, inertia)
        self.robot.add_link(link)
        self.add_joint_candidates(raw_name, component)
        self.add_meshes(link, component, raw_name, link_frame_name)

        extra = dim(f" (frame: {link_frame_name})") if link_frame_name else ""
        print(success(f"+ Adding link {name}{extra}"))

    def sight_joint(self, name: str, joint_type: str, link_name: str):
        """
        Record that a joint feature name was found on the given link
        """
        if joint_type == Joint.REVOLUTE:
            candidates, others = self.revolute_candidates, self.fixed_candidates
        else:
            candidates, others = self.fixed_candidates, self.revolute_candidates

        if name in others:
            raise ModelError(
                f"ERROR: {name} is used both as an axis and as a coordinate system"
            )

        if name not in candidates:
            candidates[name] = JointCandidate(name, joint_type, link_name)
            return

        candidate = candidates[name]
        if candidate.parent == link_name:
            raise ModelError(f"ERROR: {name} appears twice in {link_name}")
        if candidate.complete():
            raise ModelError(
                f"ERROR: {name} appears in more than two components "
                f"({candidate.parent}, {candidate.child}, {link_name})"
            )
        candidate.child = link_name

    def add_joint_candidates(self, link_name: str, component: Component):
        axes = component.axes()
        if len(axes) == 0:
            print(warning(f"WARNING: There is no AXIS in the part {link_name}"))
        for axis in axes:
            self.sight_joint(axis.name, Joint.REVOLUTE, link_name)

        coordinate_systems = component.coordinate_systems()
        if len(coordinate_systems) == 0:
            print(warning(f"WARNING: There is no CSYS in the part {link_name}"))
        for csys_name in coordinate_systems:
            if SECONDARY_CSYS_PATTERN in csys_name:
                self.sight_joint(csys_name, Joint.FIXED, link_name)

    def joint_name(self, parent: LinkInfo, child: LinkInfo) -> str:
        raw_name = parent.raw_name + "--" + child.raw_name
        if self.config.has_rename(raw_name):
            return self.config.rename(raw_name)

        return parent.name + "--" + child.name

    def add_joint(self, candidate: JointCandidate):
        # Cut assembly, the other side of the joint is not there
        if not candidate.complete():
            return

        parent = self.links[candidate.parent]
        child = self.links[candidate.child]
        name = self.joint_name(parent, child)
        T_parent_child = inverse(parent.T_root_link) @ child.T_root_link

        if candidate.joint_type == Joint.REVOLUTE:
            axis = root_to_axis(
                self.assembly,
                parent.feature,
                parent.component,
                candidate.name,
                parent.T_root_link,
                self.config.reverse_rotation_axis(name),
            )
            limits = self.joint_data.limits(name)
            damping, friction = self.joint_data.dynamics(name)
            joint = Joint(
                name,
                Joint.REVOLUTE,
                parent.name,
                child.name,
                T_parent_child,
                axis,
                limits,
                damping,
                friction,
            )
            limits_str = dim(f" [{np.rad2deg(limits[0]):.1f}°, {np.rad2deg(limits[1]):.1f}°]")
        else:
            joint = Joint(name, Joint.FIXED, parent.name, child.name, T_parent_child)
            limits_str = ""

        self.robot.add_joint(joint)
        print(success(f"+ Adding {joint.joint_type} joint {name}{limits_str}"))

    def check_ordering(self):
        """
        Warns about joint graphs that are not a tree, which is usually the sign
        of components not listed parent first
        """
        parents: dict[str, list[str]] = {}
        for joint in self.robot.joints.values():
            parents.setdefault(joint.child, []).append(joint.name)

        for link_name, joint_names in parents.items():
            if len(joint_names) > 1:
                print(
                    warning(
                        f"WARNING: Link {link_name} is the child of several joints ({', '.join(joint_names)}), check the components order"
                    )
                )

        root = self.root_link()
        if root in parents:
            print(
                warning(
                    f"WARNING: Root link {root} is the child of joint {parents[root][0]}, check the components order"
                )
            )

    def root_link(self) -> str | None:
        if self.config.root is not None:
            return str(self.config.root)
        return self.default_root

    def mesh_name(self, raw_name: str) -> str:
        name = raw_name
        if self.config.string_to_remove:
            name = name.replace(self.config.string_to_remove, "", 1)
        if self.config.force_lowercase:
            name = name.lower()
        return name

    def add_meshes(
        self, link: Link, component: Component, raw_name: str, link_frame_name: str
    ):
        """
        Export the component mesh and attach visual and collision to the link
        """
        mesh_name = self.mesh_name(raw_name)
        os.makedirs(self.output_directory, exist_ok=True)
        component.export_mesh(
            os.path.join(self.output_directory, mesh_name + MESH_EXTENSION),
            link_frame_name,
        )

        filename = self.config.filename_format.replace("%s", mesh_name, 1)
        filename += MESH_EXTENSION
        color = self.config.color(link.name)

        link.visuals.append(Mesh(filename, color, self.config.scale))

        collision = self.config.collision_geometry(link.name)
        if collision is None:
            collision = Mesh(filename, color, self.config.scale)
        link.collisions.append(collision)
