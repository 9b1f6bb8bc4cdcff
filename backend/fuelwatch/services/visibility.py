from collections.abc import Mapping
from typing import Iterable, List, Optional, TypeVar

from fuelwatch.schemas.permission import PermissionScope

T = TypeVar("T")


def _field(tank, name: str):
    if isinstance(tank, Mapping):
        return tank.get(name)
    return getattr(tank, name, None)


def can_view(tank, scope: Optional[PermissionScope]) -> bool:
    """
    Whether `scope` may see `tank`. A tank without a subgroup is only visible
    when its group is open to the caller without subgroup restriction.
    """
    if scope is None:
        return False
    if scope.is_admin:
        return True
    access = scope.access_for(_field(tank, 'group_name'))
    if access is None:
        return False
    return access.allows(_field(tank, 'subgroup'))


def filter_tanks(tanks: Iterable[T], scope: Optional[PermissionScope]) -> List[T]:
    """Return the tanks `scope` may see, in input order. Pure and idempotent."""
    if scope is None:
        return []
    if scope.is_admin:
        return list(tanks)
    return [tank for tank in tanks if can_view(tank, scope)]


def visible_subgroups(scope: Optional[PermissionScope], group_name: str, known: Iterable[str]) -> List[str]:
    """Subset of a group's `known` subgroups (order kept) the scope may see."""
    if scope is None:
        return []
    if scope.is_admin:
        return list(known)
    access = scope.access_for(group_name)
    if access is None:
        return []
    return [name for name in known if access.allows(name)]
