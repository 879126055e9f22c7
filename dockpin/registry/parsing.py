"""
Header parsers for the registry protocol.

Both parsers are permissive: input that doesn't match the narrow
grammar they understand yields None ("no challenge" / "no next page") rather
than an exception.
"""

import logging
import re
from typing import Dict, Optional
from urllib.parse import parse_qsl, urlsplit

from dockpin.models.registry import AuthChallenge

logger = logging.getLogger(__name__)

# Bearer realm="https://auth.docker.io/token",service="registry.docker.io"
AUTH_CHALLENGE_PATTERN = re.compile(r'Bearer realm="(.*?)",service="(.*?)"')

# <https://registry.example.com/v2/app/tags/list?n=1000&last=v1.2>; rel="next"
LINK_NEXT_PATTERN = re.compile(r'<(.*)>; rel="next"')


def parse_www_authenticate(header: Optional[str]) -> Optional[AuthChallenge]:
    """
    Parse a WWW-Authenticate header into a bearer challenge.

    Args:
        header: Raw header value, may be None

    Returns:
        AuthChallenge, or None if the header is absent or isn't a
        `Bearer realm="...",service="..."` challenge (basic/anonymous auth applies)

    Example:
        Input: 'Bearer realm="https://ghcr.io/token",service="ghcr.io",scope="repository:user/app:pull"'
        Output: AuthChallenge(token_endpoint="https://ghcr.io/token", service="ghcr.io")
    """
    if not header:
        return None

    match = AUTH_CHALLENGE_PATTERN.search(header)
    if not match:
        logger.debug(f"WWW-Authenticate is not a bearer challenge: {header[:40]}")
        return None

    return AuthChallenge(token_endpoint=match.group(1), service=match.group(2))


def parse_link_next(header: Optional[str]) -> Optional[Dict[str, str]]:
    """
    Extract the query parameters of the next tag page from a Link header.

    Only the exact form `<url>; rel="next"` is recognised. The url may be
    absolute or relative; only its query string is used since the next
    request goes to the same tags endpoint.

    Returns:
        Parameter dict, or None when there is no (usable) next page
    """
    if not header:
        return None

    match = LINK_NEXT_PATTERN.fullmatch(header.strip())
    if not match:
        logger.debug(f"Ignoring unrecognised Link header: {header[:80]}")
        return None

    query = urlsplit(match.group(1)).query
    params = dict(parse_qsl(query, keep_blank_values=True))
    if not params:
        logger.warning(f"Link header has no query parameters, stopping pagination: {header[:80]}")
        return None

    return params
