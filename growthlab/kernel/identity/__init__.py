"""
Identity Core - bearer token verification and directory lookups.
"""

from growthlab.kernel.identity.jwt import (
    JWTManager,
    AccessTokenPayload,
    create_access_token,
    verify_access_token,
)
from growthlab.kernel.identity.directory import ClientDirectory, CollaboratorDirectory

__all__ = [
    "JWTManager",
    "AccessTokenPayload",
    "create_access_token",
    "verify_access_token",
    "ClientDirectory",
    "CollaboratorDirectory",
]
