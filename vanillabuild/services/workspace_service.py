"""
Working copy classification for vanillabuild.
"""

from pathlib import Path
from typing import Union

from ..domain.workspace import WorkspaceClassification


def classify_workspace(path: Union[str, Path]) -> WorkspaceClassification:
    """
    Classify the working copy location at the start of a run.

    Anything at the path (directory or file) counts as PRESENT; the
    update path then fails with an I/O error if it is not a working copy.
    """
    path = Path(path)
    if path.exists() or path.is_symlink():
        return WorkspaceClassification.PRESENT
    return WorkspaceClassification.ABSENT
