"""
Registry protocol types.

Small immutable records passed between the schema probe, auth negotiation,
tag listing and digest lookups.
"""

import base64
from dataclasses import dataclass, field
from typing import Dict, List, Optional


SCHEME_HTTPS = "https"
SCHEME_HTTP = "http"


@dataclass(frozen=True)
class AuthChallenge:
    """Bearer challenge advertised by a registry's WWW-Authenticate header"""
    token_endpoint: str  # the challenge "realm"
    service: str


@dataclass(frozen=True)
class Credentials:
    """
    Registry credentials supplied by a CredentialsProvider.

    Resolution order when building an Authorization value:
    identity token (Bearer) > pre-encoded auth string > username/password.
    """
    username: Optional[str] = None
    password: Optional[str] = None
    identity_token: Optional[str] = None
    pre_encoded_auth: Optional[str] = None

    def is_empty(self) -> bool:
        return not any((self.username, self.password, self.identity_token, self.pre_encoded_auth))

    def to_authorization(self) -> str:
        """
        Authorization header value for direct (non token-exchange) use.

        Missing username/password are encoded as empty strings.
        """
        if self.identity_token:
            return f"Bearer {self.identity_token}"
        if self.pre_encoded_auth:
            return f"Basic {self.pre_encoded_auth}"
        user_and_password = f"{self.username or ''}:{self.password or ''}"
        encoded = base64.b64encode(user_and_password.encode("utf-8")).decode("ascii")
        return f"Basic {encoded}"

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks
        return f"Credentials(username={self.username!r}, has_secret={not self.is_empty()})"


@dataclass(frozen=True)
class RegistryEndpoint:
    """Outcome of the schema probe: how to reach a registry's v2 API"""
    scheme: str
    host: str
    challenge: Optional[AuthChallenge] = None

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}/v2"

    def tags_url(self, repository: str) -> str:
        return f"{self.base_url}/{repository}/tags/list"

    def manifest_url(self, repository: str, reference: str) -> str:
        return f"{self.base_url}/{repository}/manifests/{reference}"


@dataclass
class TagPage:
    """One page of a tag listing plus the query parameters of the next page"""
    tags: List[str] = field(default_factory=list)
    next_params: Optional[Dict[str, str]] = None

    @property
    def has_next(self) -> bool:
        return bool(self.next_params)


@dataclass(frozen=True)
class DigestRecord:
    """Content digest the registry reports for a tag's manifest"""
    tag: str
    digest: str
