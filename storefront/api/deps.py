# storefront/api/deps.py
from typing import Iterator

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from storefront.domain.enums import Role
from storefront.domain.exceptions import ForbiddenError, UnauthorizedError
from storefront.domain.schemas import CurrentUser
from storefront.repos.user_repo import UserRepo


def get_db(request: Request) -> Iterator[Session]:
    """One session per request from the Database handle built by create_app()."""
    yield from request.app.state.db.session()


def get_current_user(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Identity is verified upstream (gateway / auth service) and forwarded as
    X-User-Id. Here we only check that the user exists and is active, the
    role always comes from our own users table.
    """
    if x_user_id is None:
        raise UnauthorizedError("Not authorized to access this route")
    try:
        user_id = int(x_user_id)
    except ValueError:
        user_id = None
    # ids are positive 64-bit integers
    if user_id is None or not 0 < user_id < 2**63:
        raise UnauthorizedError("Not authorized to access this route", {"user_id": x_user_id})

    user = UserRepo(db).get_user(user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("User not found or inactive", {"user_id": user_id})

    return CurrentUser(id=user.id, email=user.email, role=Role(user.role))


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise ForbiddenError(f"User role {user.role.value} is not authorized to access this route")
    return user
