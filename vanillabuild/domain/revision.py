"""
Revision targeting for vanillabuild.

A RevisionTarget says which revision the working copy should end up at:
the tip of the default branch, or an explicitly pinned ref.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any


@dataclass(frozen=True)
class RevisionTarget:
    """
    Checkout target resolved from caller input.

    identifier is None for the default branch; otherwise it is the
    commit, tag or branch name exactly as the caller supplied it.
    """
    identifier: Optional[str] = None

    @classmethod
    def default(cls) -> 'RevisionTarget':
        return cls()

    @classmethod
    def pinned(cls, identifier: str) -> 'RevisionTarget':
        return cls(identifier=identifier)

    @property
    def is_default(self) -> bool:
        return self.identifier is None

    @property
    def is_pinned(self) -> bool:
        return self.identifier is not None

    def checkout_ref(self, default_branch: str) -> str:
        """Ref handed to checkout: the branch name or the pinned identifier."""
        if self.is_default:
            return default_branch
        return self.identifier

    def describe(self, default_branch: str = "default branch") -> str:
        if self.is_default:
            return f"latest {default_branch}"
        return f"commit {self.identifier}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': 'default' if self.is_default else 'pinned',
            'identifier': self.identifier,
        }


def resolve_revision(commit: Optional[str] = None) -> RevisionTarget:
    """
    Resolve an optional --commit value into a RevisionTarget.

    The identifier is not validated here; an unknown ref fails later,
    at checkout time.
    """
    if commit is None:
        return RevisionTarget.default()
    return RevisionTarget.pinned(commit)
