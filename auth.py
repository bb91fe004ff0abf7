"""Request viewer resolution.

Identity comes from the upstream auth provider as request headers; admin
rights are granted by presenting the configured admin token.
"""

import hmac
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header

from config import Settings, get_settings
from errors import AppError


@dataclass(frozen=True)
class Viewer:
    is_admin: bool = False
    email: Optional[str] = None
    name: Optional[str] = None


def get_viewer(
    x_admin_token: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Viewer:
    is_admin = bool(
        settings.admin_token
        and x_admin_token
        and hmac.compare_digest(x_admin_token, settings.admin_token)
    )
    return Viewer(is_admin=is_admin, email=x_user_email or None, name=x_user_name or None)


def require_admin(viewer: Viewer = Depends(get_viewer)) -> Viewer:
    if not viewer.is_admin:
        raise AppError("permission-denied", "Admin privileges required")
    return viewer


def require_member(viewer: Viewer = Depends(get_viewer)) -> Viewer:
    """A signed-in, non-admin user (feedback authors)."""
    if not viewer.email:
        raise AppError("unauthenticated", "Sign-in required")
    if viewer.is_admin:
        raise AppError("permission-denied", "Admins cannot submit feedback")
    return viewer
