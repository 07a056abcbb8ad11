import numpy as np
import pytest
import yaml

from cad_to_robot.cad import Axis, CadAssembly, Component, Feature, MassProperties
from cad_to_robot.geometry import transform


class FakeComponent(Component):
    def __init__(
        self,
        name,
        mass=1.0,
        center_of_gravity=(0.0, 0.0, 0.0),
        inertia=None,
        axes=None,
        coordinate_systems=None,
    ):
        self._name = name
        self._mass_properties = MassProperties(
            mass,
            center_of_gravity,
            inertia if inertia is not None else np.diag([1.0, 1.0, 1.0]),
        )
        self._axes = axes or []
        self._coordinate_systems = coordinate_systems or {}
        self.exported = []

    @property
    def name(self):
        return self._name

    def mass_properties(self):
        return self._mass_properties

    def axes(self):
        return list(self._axes)

    def coordinate_systems(self):
        return dict(self._coordinate_systems)

    def export_mesh(self, filename, frame_name=""):
        self.exported.append((filename, frame_name))


class FakeFeature(Feature):
    def __init__(self, index, component, is_component=True):
        self.index = index
        self._component = component
        self._is_component = is_component

    @property
    def is_component(self):
        return self._is_component

    @property
    def path(self):
        return (self.index,)

    def component(self):
        return self._component


class FakeAssembly(CadAssembly):
    """
    In-memory assembly, components are added in traversal order
    """

    def __init__(self):
        self._features = []
        self.transforms = {}

    def add(self, component, T_root_component=None, is_component=True):
        feature = FakeFeature(len(self._features), component, is_component)
        self._features.append(feature)
        self.transforms[feature.path] = (
            T_root_component if T_root_component is not None else np.eye(4)
        )
        return feature

    def features(self):
        return list(self._features)

    def component_transform(self, path):
        return self.transforms[path]


def axis(name, direction=(0.0, 0.0, 1.0)):
    return Axis(name, (0.0, 0.0, 0.0), direction)


def rot_z(angle):
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


@pytest.fixture
def write_config(tmp_path):
    def write(data, name="config.yaml"):
        filename = tmp_path / name
        filename.write_text(yaml.safe_dump(data))
        return str(filename)

    return write


@pytest.fixture
def write_joints(tmp_path):
    def write(rows, name="joints.csv"):
        filename = tmp_path / name
        lines = ["joint,lower_limit,upper_limit,damping,friction"]
        for joint_name, values in rows.items():
            lines.append(",".join([joint_name] + [str(value) for value in values]))
        filename.write_text("\n".join(lines) + "\n")
        return str(filename)

    return write


@pytest.fixture
def two_links():
    """
    Components A (root) and B sharing the axis J1, B is 1 unit above A
    """
    assembly = FakeAssembly()
    a = FakeComponent("A", axes=[axis("J1")])
    b = FakeComponent("B", axes=[axis("J1")])
    assembly.add(a)
    assembly.add(b, transform([0.0, 0.0, 1.0]))
    return assembly
