from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict, FrozenSet
import enum


class Role(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    COMPLIANCE_MANAGER = "compliance_manager"
    SCHEDULER = "scheduler"
    VIEWER = "viewer"
    DRIVER = "driver"


class AccessibleGroup(BaseModel):
    """
    One entry of a permission source. `subgroups=None` means every subgroup of
    the group is visible; a list (even an empty one) restricts to that list.
    """
    name: str
    subgroups: Optional[List[str]] = None


class PermissionSource(BaseModel):
    """Raw payload from the permission collaborator, before resolution."""
    role: Optional[str] = None
    is_admin: bool = False
    display_name: Optional[str] = None
    accessible_groups: List[AccessibleGroup] = []
    loading: bool = False


class GroupAccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    subgroups: Optional[FrozenSet[str]] = None

    @property
    def unrestricted(self) -> bool:
        return self.subgroups is None

    def allows(self, subgroup: Optional[str]) -> bool:
        if self.subgroups is None:
            return True
        return subgroup is not None and subgroup in self.subgroups


class PermissionScope(BaseModel):
    """
    Resolved visibility for one caller.

    A group missing from `groups` is not visible at all. Admin scopes skip
    the group lookup entirely.
    """
    model_config = ConfigDict(frozen=True)

    is_admin: bool = False
    role: Optional[Role] = None
    groups: Dict[str, GroupAccess] = {}

    @classmethod
    def none(cls) -> "PermissionScope":
        return cls()

    @classmethod
    def admin(cls) -> "PermissionScope":
        return cls(is_admin=True, role=Role.ADMIN)

    @property
    def grants_nothing(self) -> bool:
        return not self.is_admin and not self.groups

    def access_for(self, group_name: Optional[str]) -> Optional[GroupAccess]:
        if group_name is None:
            return None
        return self.groups.get(group_name)


class GroupAccessResponse(BaseModel):
    name: str
    unrestricted: bool
    subgroups: List[str] = []


class PermissionScopeResponse(BaseModel):
    user_id: str
    role: Optional[Role] = None
    is_admin: bool
    groups: List[GroupAccessResponse] = []
