from __future__ import annotations
import os
import numpy as np
import pandas as pd
from .exceptions import JointDataError

COLUMNS = ["lower_limit", "upper_limit", "damping", "friction"]


class JointData:
    """
    Per-joint limits and dynamics, from a table indexed by final joint name.
    Limits are given in degrees.
    """

    def __init__(self, table: pd.DataFrame):
        missing = [column for column in COLUMNS if column not in table.columns]
        if missing:
            raise JointDataError(
                f"ERROR: Joint data is missing columns: {', '.join(missing)}"
            )
        self.table: pd.DataFrame = table

    @classmethod
    def load(cls, filename: str) -> JointData:
        if not os.path.isfile(filename):
            raise JointDataError(f"ERROR: Joint data file {filename} does not exist")

        try:
            table = pd.read_csv(filename, index_col=0, skipinitialspace=True)
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise JointDataError(f"ERROR: Unable to read joint data {filename}: {e}")
        table.index = table.index.map(lambda name: str(name).strip())

        duplicated = table.index[table.index.duplicated()].unique()
        if len(duplicated):
            raise JointDataError(
                f"ERROR: Duplicate joint data rows for: {', '.join(duplicated)}"
            )

        return cls(table)

    def get(self, joint_name: str, column: str) -> float:
        if joint_name not in self.table.index:
            raise JointDataError(f"ERROR: No joint data for joint {joint_name}")

        invalid = JointDataError(f"ERROR: Invalid {column} value for joint {joint_name}")
        try:
            value = float(self.table.at[joint_name, column])
        except (TypeError, ValueError):
            raise invalid
        # Empty cells are read as NaN
        if np.isnan(value):
            raise invalid

        return value

    def limits(self, joint_name: str) -> tuple:
        """
        Retrieve (lower, upper) position limits, in radians
        """
        return (
            np.deg2rad(self.get(joint_name, "lower_limit")),
            np.deg2rad(self.get(joint_name, "upper_limit")),
        )

    def dynamics(self, joint_name: str) -> tuple:
        """
        Retrieve (damping, friction)
        """
        return self.get(joint_name, "damping"), self.get(joint_name, "friction")
