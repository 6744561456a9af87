"""
Request Context Data Model

This module defines the RequestContext dataclass describing the signed-in user
a request is made on behalf of.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class RequestContext:
    """
    Identity of the caller, extracted from the session token.

    Attributes:
        user_id: Identity provider uid of the signed-in user
        email: Email address of the signed-in user
        request_id: UUID v4 uniquely identifying this request (for log correlation)
        display_name: Optional display name carried in the session token
    """
    user_id: str
    email: str
    request_id: str
    display_name: Optional[str] = None
