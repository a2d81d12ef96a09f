"""
Workspace enums for vanillabuild.
"""

from enum import Enum


class WorkspaceClassification(Enum):
    """Whether the working copy directory exists at the start of a run."""
    ABSENT = "absent"
    PRESENT = "present"


class WorkspaceProfile(Enum):
    """Gradle workspace flavour to set up before building."""
    CI = "ci"
    DECOMPILED = "decompiled"

    @classmethod
    def from_flag(cls, decomp: bool) -> 'WorkspaceProfile':
        return cls.DECOMPILED if decomp else cls.CI
