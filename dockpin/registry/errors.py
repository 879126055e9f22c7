"""
Registry error taxonomy.

Every error carries whatever context is known (endpoint, HTTP status,
repository, tag) so a failed resolution can be diagnosed from the message alone.
"""

from typing import Optional


class RegistryError(Exception):
    """Non-2xx response, or a 200 response missing a mandated header/field"""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status: Optional[int] = None,
        repository: Optional[str] = None,
        tag: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.endpoint = endpoint
        self.status = status
        self.repository = repository
        self.tag = tag

    def __str__(self) -> str:
        details = []
        if self.repository:
            details.append(f"repository={self.repository}")
        if self.tag:
            details.append(f"tag={self.tag}")
        if self.status is not None:
            details.append(f"status={self.status}")
        if self.endpoint:
            details.append(f"endpoint={self.endpoint}")
        if not details:
            return self.message
        return f"{self.message} ({', '.join(details)})"


class RegistryUnreachable(RegistryError):
    """Transport, DNS, TLS or timeout failure"""
    pass


class TlsNegotiationFailed(RegistryUnreachable):
    """TLS handshake failed; the schema probe retries over plain HTTP"""
    pass


class Unauthorized(RegistryError):
    """Credentials were rejected (401)"""
    pass


class ImageNotFound(RegistryError):
    """Manifest lookup returned 404"""
    pass
