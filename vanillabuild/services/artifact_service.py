"""
Artifact discovery for vanillabuild.

The build leaves several jars in the artifact directory. The one to run
is the jar whose name does not mark it as javadoc, release or sources.
"""

from pathlib import Path
from typing import List, Union

BYPRODUCT_MARKERS = ("javadoc", "release", "sources")

ARTIFACT_HINT = (
    "The jar file to run is the file without "
    + ", ".join(BYPRODUCT_MARKERS[:-1])
    + f" or {BYPRODUCT_MARKERS[-1]} in the filename."
)


def is_byproduct(path: Union[str, Path]) -> bool:
    """True if the file name marks the jar as a documentation/release/sources variant."""
    name = Path(path).name.lower()
    return any(marker in name for marker in BYPRODUCT_MARKERS)


def list_artifacts(artifact_dir: Union[str, Path]) -> List[Path]:
    """All jars in the artifact directory, sorted by name."""
    artifact_dir = Path(artifact_dir)
    if not artifact_dir.is_dir():
        return []
    return sorted(p for p in artifact_dir.glob("*.jar") if p.is_file())


def find_primary_artifacts(artifact_dir: Union[str, Path]) -> List[Path]:
    """Jars in the artifact directory that are not build byproducts."""
    return [p for p in list_artifacts(artifact_dir) if not is_byproduct(p)]
