"""
Role-based access to console pages.

Pages are resolved by key and checked before anything renders.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from parkdesk.domain import Role, User
from parkdesk.exceptions import AuthenticationRequiredError, NotFoundError, PermissionDeniedError
from parkdesk.logging_config import get_logger

logger = get_logger(__name__)

STAFF = frozenset({Role.ADMIN, Role.COMPANY_MANAGER, Role.MANAGER})
RESIDENTS = frozenset({Role.TENANT, Role.OWNER_TENANT})


@dataclass(frozen=True)
class RouteGuard:
    allowed_roles: frozenset[Role]
    resource: str | None = None

    def allows(self, user: User | None) -> bool:
        return user is not None and user.role in self.allowed_roles

    def check(self, user: User | None) -> User:
        if user is None:
            raise AuthenticationRequiredError()
        if user.role not in self.allowed_roles:
            logger.warning(
                "access_denied",
                extra={"role": user.role.value, "resource": self.resource, "user_id": user.id},
            )
            raise PermissionDeniedError(user.role.value, resource=self.resource)
        return user


@dataclass(frozen=True)
class PageSpec:
    key: str
    title: str
    guard: RouteGuard


def _page(key: str, title: str, roles: Iterable[Role]) -> PageSpec:
    return PageSpec(key=key, title=title, guard=RouteGuard(frozenset(roles), resource=key))


# Navigation order.
PAGE_ACCESS: dict[str, PageSpec] = {
    page.key: page
    for page in (
        _page("lots", "Lots", STAFF),
        _page("import", "Bulk upload", {Role.ADMIN}),
        _page("parks", "Parks", STAFF),
        _page("companies", "Companies", {Role.ADMIN}),
        _page("showings", "Showings", STAFF),
        _page("tenants", "Tenants", STAFF),
        _page("my_info", "My info", RESIDENTS),
    )
}


def resolve_page(key: str | None, user: User | None) -> PageSpec:
    """
    Look up a page and check the user may open it.

    An empty key resolves to the user's first allowed page.

    Raises:
        AuthenticationRequiredError: no signed-in user.
        NotFoundError: unknown page key.
        PermissionDeniedError: the user's role may not open the page.
    """
    if user is None:
        raise AuthenticationRequiredError()
    if not key:
        pages = allowed_pages(user)
        if not pages:
            raise PermissionDeniedError(user.role.value)
        return pages[0]
    page = PAGE_ACCESS.get(key)
    if page is None:
        raise NotFoundError("Page not found", resource_type="page", resource_id=key)
    page.guard.check(user)
    return page


def allowed_pages(user: User | None) -> list[PageSpec]:
    return [page for page in PAGE_ACCESS.values() if page.guard.allows(user)]
