from .config import Config
from .export import build_robot, convert
from .joint_data import JointData
from .robot import Joint, Link, Robot
from .robot_builder import RobotBuilder
