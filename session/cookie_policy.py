"""
Cookie attribute policy applied to sessions before they are written.

The policy is resolved once per store from the environment mode and the
configured cookie options, then merged into each session's ``cookie``
sub-mapping on write. Policy attributes always win over values the
caller already set on the cookie.
"""

from typing import Any, Mapping, Optional

from config.settings import CookieOptions, DevCookieOptions


DEV_COOKIE_DOMAIN = "dev.ob3.io"

# Base policy for development, before development overrides are applied
DEV_COOKIE_POLICY: dict[str, Any] = {
    "secure": False,
    "httpOnly": False,
    "sameSite": "lax",
    "domain": DEV_COOKIE_DOMAIN,
}


def resolve_cookie_policy(
    is_development: bool,
    cookie_options: Optional[CookieOptions] = None,
    dev_cookie_options: Optional[DevCookieOptions] = None
) -> dict[str, Any]:
    """
    Compute the cookie attributes merged into every written session.
    
    In development the fixed development policy is used, with
    ``dev_cookie_options`` applied on top. In production the configured
    ``cookie_options`` are used as-is; unconfigured attributes default to
    ``secure=True, httpOnly=True, sameSite="strict"``.
    
    Args:
        is_development: Whether the store runs in development mode.
        cookie_options: Production cookie attributes.
        dev_cookie_options: Development overrides, applied per attribute.
        
    Returns:
        Flat mapping of cookie attribute name to value.
    """
    if is_development:
        overrides = (dev_cookie_options or DevCookieOptions()).to_policy()
        return {**DEV_COOKIE_POLICY, **overrides}
    return (cookie_options or CookieOptions()).to_policy()


def apply_cookie_policy(
    cookie: Optional[Mapping[str, Any]],
    policy: Mapping[str, Any]
) -> dict[str, Any]:
    """Return ``cookie`` with ``policy`` merged over it."""
    if not isinstance(cookie, Mapping):
        cookie = {}
    return {**cookie, **policy}
