"""
Auth negotiation.

Turns a probe's challenge (or lack of one) plus optional credentials into a
ready-to-use Authorization header value. With a bearer challenge the token is
exchanged at the challenge realm, scoped to pulling a single repository.
"""

import logging
from typing import Optional

from dockpin.models.registry import AuthChallenge, Credentials
from dockpin.registry.errors import RegistryError, Unauthorized
from dockpin.registry.transport import RegistryTransport

logger = logging.getLogger(__name__)


class AuthNegotiator:
    """Produces Authorization header values for registry calls"""

    def __init__(self, transport: RegistryTransport):
        self.transport = transport

    async def authorize(
        self,
        challenge: Optional[AuthChallenge],
        credentials: Optional[Credentials],
        repository: str,
    ) -> Optional[str]:
        """
        Build the Authorization header value for a repository.

        Args:
            challenge: Bearer challenge from the schema probe, or None
            credentials: Caller credentials, or None for anonymous access. A
                Credentials object with no fields set is still sent, as Basic ":"
            repository: Repository path, used for the pull scope

        Returns:
            "Bearer <token>" or "Basic <auth>", or None for anonymous access
            to a registry without a challenge

        Raises:
            Unauthorized: Token endpoint rejected the credentials
            RegistryError: Token endpoint failed or returned no token
        """
        if challenge is None:
            if credentials is None:
                logger.debug(f"No challenge and no credentials for {repository}, using anonymous access")
                return None
            logger.debug(f"No challenge for {repository}, using credentials directly")
            return credentials.to_authorization()

        token = await self._fetch_token(challenge, credentials, repository)
        return f"Bearer {token}"

    async def _fetch_token(
        self,
        challenge: AuthChallenge,
        credentials: Optional[Credentials],
        repository: str,
    ) -> str:
        params = {
            "service": challenge.service,
            "scope": f"repository:{repository}:pull",
        }

        headers = {}
        if credentials is not None:
            # for private repos
            headers["Authorization"] = credentials.to_authorization()

        logger.debug(f"Requesting pull token for {repository} from {challenge.token_endpoint}")
        response = await self.transport.request(
            "GET", challenge.token_endpoint, headers=headers, params=params
        )

        if response.status == 401:
            raise Unauthorized(
                "Unauthorized access to token endpoint",
                endpoint=challenge.token_endpoint,
                status=401,
                repository=repository,
            )
        if response.status != 200:
            raise RegistryError(
                f"Error making token request: {response.text()}",
                endpoint=challenge.token_endpoint,
                status=response.status,
                repository=repository,
            )

        data = response.json()
        token = None
        if isinstance(data, dict):
            token = data.get("token") or data.get("access_token")
        if not token:
            raise RegistryError(
                "Token endpoint returned 200 but no token in response",
                endpoint=challenge.token_endpoint,
                status=200,
                repository=repository,
            )

        logger.debug(f"Successfully obtained token from {challenge.token_endpoint}")
        return token
