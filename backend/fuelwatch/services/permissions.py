from collections.abc import Mapping
from typing import Callable, Dict, Iterable, Optional, Tuple
import logging
import threading
import time

from pydantic import ValidationError

from fuelwatch.config import settings
from fuelwatch.errors import PermissionUnresolved
from fuelwatch.schemas.permission import (
    AccessibleGroup,
    GroupAccess,
    PermissionScope,
    PermissionSource,
    Role,
)
from fuelwatch.services.session import SessionContext, SessionEvent

logger = logging.getLogger(__name__)


def _parse_role(role) -> Role:
    if isinstance(role, Role):
        return role
    if not isinstance(role, str) or not role.strip():
        raise PermissionUnresolved(f"No role for caller: {role!r}")
    try:
        return Role(role.strip().lower())
    except ValueError:
        raise PermissionUnresolved(f"Unknown role: {role!r}")


def _group_access(entry) -> GroupAccess:
    if isinstance(entry, AccessibleGroup):
        name, subgroups = entry.name, entry.subgroups
    elif isinstance(entry, Mapping):
        name, subgroups = entry.get('name'), entry.get('subgroups')
    else:
        raise PermissionUnresolved(f"Malformed accessible group entry: {entry!r}")

    if not isinstance(name, str) or not name.strip():
        raise PermissionUnresolved(f"Accessible group entry has no name: {entry!r}")
    if subgroups is None:
        return GroupAccess(name=name)
    if isinstance(subgroups, str) or not isinstance(subgroups, Iterable):
        raise PermissionUnresolved(f"Subgroups for {name!r} must be a list, got {subgroups!r}")
    if not all(isinstance(s, str) for s in subgroups):
        raise PermissionUnresolved(f"Subgroups for {name!r} must be names: {subgroups!r}")
    return GroupAccess(name=name, subgroups=frozenset(subgroups))


def _merge(existing: Optional[GroupAccess], access: GroupAccess) -> GroupAccess:
    # Unrestricted access to a group wins over any restricted entry for it
    if existing is None:
        return access
    if existing.unrestricted or access.unrestricted:
        return GroupAccess(name=access.name)
    return GroupAccess(name=access.name, subgroups=existing.subgroups | access.subgroups)


def resolve_scope(role, accessible_groups: Optional[Iterable] = None) -> PermissionScope:
    """
    Resolve a role plus its explicit group grants into a PermissionScope.

    Admins get unrestricted access. Every other known role sees only the
    listed groups; an entry without subgroups opens the whole group, an entry
    with a list opens only those subgroups. Anything unresolvable (missing or
    unknown role, malformed entries) yields a scope that grants nothing.
    """
    try:
        parsed = _parse_role(role)
        if parsed == Role.ADMIN:
            return PermissionScope.admin()

        if accessible_groups is None:
            accessible_groups = []
        elif isinstance(accessible_groups, (str, bytes)) or not isinstance(accessible_groups, Iterable):
            raise PermissionUnresolved(f"Accessible groups must be a list, got {accessible_groups!r}")

        groups: Dict[str, GroupAccess] = {}
        for entry in accessible_groups:
            access = _group_access(entry)
            groups[access.name] = _merge(groups.get(access.name), access)
        return PermissionScope(role=parsed, groups=groups)
    except PermissionUnresolved as e:
        logger.warning(f"Denying all tank access: {e}")
        return PermissionScope.none()


def resolve_permission_source(source) -> PermissionScope:
    """Resolve a raw permission-source payload. Missing or loading payloads grant nothing."""
    if source is None:
        return PermissionScope.none()
    if not isinstance(source, PermissionSource):
        try:
            source = PermissionSource.model_validate(source)
        except ValidationError as e:
            logger.warning(f"Denying all tank access, malformed permission source: {e}")
            return PermissionScope.none()

    if source.loading:
        return PermissionScope.none()
    if source.is_admin and source.role != Role.ADMIN.value:
        logger.warning(f"Ignoring admin flag for non-admin role {source.role!r}")
    return resolve_scope(source.role, source.accessible_groups)


class ScopeCache:
    """
    Per-user cache of resolved scopes. Subscribe `handle_session_event` to the
    SessionLifecycle so refreshed or ended sessions drop their entry.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = settings.permission_cache_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, PermissionScope]] = {}
        self._generations: Dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[PermissionScope]:
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            stored_at, scope = entry
            if self._clock() - stored_at > self.ttl_seconds:
                del self._entries[user_id]
                return None
            return scope

    def generation(self, user_id: str) -> Tuple[int, int]:
        """Token that changes whenever `user_id` (or the whole cache) is invalidated."""
        with self._lock:
            return self._epoch, self._generations.get(user_id, 0)

    def put(self, user_id: str, scope: PermissionScope, generation: Optional[Tuple[int, int]] = None):
        with self._lock:
            # An invalidation since `generation` was taken makes this scope stale
            if generation is not None and generation != (self._epoch, self._generations.get(user_id, 0)):
                return
            self._entries[user_id] = (self._clock(), scope)

    def invalidate(self, user_id: Optional[str] = None):
        with self._lock:
            if user_id is None:
                self._entries.clear()
                self._epoch += 1
            else:
                self._entries.pop(user_id, None)
                self._generations[user_id] = self._generations.get(user_id, 0) + 1

    def handle_session_event(self, event: SessionEvent, context: SessionContext):
        if event in (SessionEvent.REFRESHED, SessionEvent.ENDED):
            self.invalidate(context.user_id)

    def get_or_resolve(
        self,
        context: Optional[SessionContext],
        load_source: Callable[[str], Optional[PermissionSource]],
    ) -> PermissionScope:
        if context is None:
            return PermissionScope.none()

        cached = self.get(context.user_id)
        if cached is not None:
            return cached

        generation = self.generation(context.user_id)
        try:
            source = load_source(context.user_id)
        except Exception as e:
            logger.error(f"Permission lookup failed for user {context.user_id}: {e}")
            return PermissionScope.none()

        scope = resolve_permission_source(source)
        # Missing role rows and loading sources are not cached
        if isinstance(source, PermissionSource) and not source.loading and source.role is not None:
            self.put(context.user_id, scope, generation)
        return scope
