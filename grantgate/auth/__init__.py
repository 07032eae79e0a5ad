"""
GrantGate Auth - identity gate consulted before every mutation.
"""

from grantgate.auth.authorizer import (
    AllowAllAuthorizer,
    Authorizer,
    CallerAuthorizer,
    SignatureAuthorizer,
    SignedRequest,
    require_auth,
)

__all__ = [
    "Authorizer",
    "AllowAllAuthorizer",
    "CallerAuthorizer",
    "SignatureAuthorizer",
    "SignedRequest",
    "require_auth",
]
