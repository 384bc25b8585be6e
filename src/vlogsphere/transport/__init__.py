"""
Transport layer for VlogSphere.

The gateway is the only component that speaks HTTP; it hands the rest of
the client normalized models and GatewayError failures.
"""

from vlogsphere.transport.errors import GatewayError
from vlogsphere.transport.gateway import TransportGateway
from vlogsphere.transport.models import (
    CredentialPair,
    LoginPayload,
    Profile,
    RegisterResponse,
    ToggleResponse,
)

__all__ = [
    "GatewayError",
    "TransportGateway",
    "CredentialPair",
    "LoginPayload",
    "Profile",
    "RegisterResponse",
    "ToggleResponse",
]
