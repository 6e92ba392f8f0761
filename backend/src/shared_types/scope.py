"""
Tenant scope of the acting user.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TenantScope:
    """
    Library/branch visibility of a caller.

    library_id None means platform-wide access; branch_id None means every
    branch of the library.
    """
    library_id: Optional[int] = None
    branch_id: Optional[int] = None

    def allows(self, library_id: int, branch_id: Optional[int] = None) -> bool:
        """Check whether a row owned by (library_id, branch_id) is visible."""
        if self.library_id is None:
            return True
        if self.library_id != library_id:
            return False
        if self.branch_id is None or branch_id is None:
            return True
        return self.branch_id == branch_id


PLATFORM_SCOPE = TenantScope()
