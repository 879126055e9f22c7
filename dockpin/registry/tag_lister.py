"""
Tag listing.

Fetches `/v2/<repo>/tags/list` page by page, following `Link: <url>; rel="next"`
headers until there are none, and returns every tag in registry order.
"""

import logging
from typing import Dict, List, Optional

from dockpin.models.registry import RegistryEndpoint, TagPage
from dockpin.registry.errors import RegistryError, Unauthorized
from dockpin.registry.parsing import parse_link_next
from dockpin.registry.transport import RegistryTransport

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000


class TagLister:
    """Retrieves the complete tag list of a repository"""

    def __init__(self, transport: RegistryTransport, page_size: int = DEFAULT_PAGE_SIZE):
        self.transport = transport
        self.page_size = page_size

    async def fetch_page(
        self,
        endpoint: RegistryEndpoint,
        repository: str,
        params: Dict[str, str],
        auth_header: Optional[str] = None,
    ) -> TagPage:
        """Fetch a single page of tags"""
        url = endpoint.tags_url(repository)
        headers = {"Authorization": auth_header} if auth_header else {}

        logger.debug(f"Getting page of tags for {repository}: {params}")
        response = await self.transport.request("GET", url, headers=headers, params=params)

        if response.status == 401:
            raise Unauthorized(
                "Unauthorized registry access while listing tags",
                endpoint=url, status=401, repository=repository,
            )
        if response.status != 200:
            raise RegistryError(
                "Error getting tags", endpoint=url, status=response.status, repository=repository
            )

        data = response.json()
        if not isinstance(data, dict):
            raise RegistryError(
                "Tag list response is not a JSON object",
                endpoint=url, status=200, repository=repository,
            )
        # Registries return {"tags": null} for repositories without tags
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise RegistryError(
                "Tag list response 'tags' is not a list",
                endpoint=url, status=200, repository=repository,
            )

        return TagPage(tags=[str(t) for t in tags], next_params=parse_link_next(response.headers.get("Link")))

    async def list_tags(
        self,
        endpoint: RegistryEndpoint,
        repository: str,
        auth_header: Optional[str] = None,
    ) -> List[str]:
        """
        List every tag of a repository.

        Raises:
            Unauthorized: 401 on any page
            RegistryError: Any other non-200 page or malformed body
        """
        logger.debug(f"Finding image tags '{endpoint.host}/{repository}'")
        page = await self.fetch_page(endpoint, repository, {"n": str(self.page_size)}, auth_header)
        all_tags: List[str] = list(page.tags)
        pages = 1

        while page.has_next:
            page = await self.fetch_page(endpoint, repository, page.next_params, auth_header)
            all_tags.extend(page.tags)
            pages += 1

        logger.debug(f"Found {len(all_tags)} tags for {repository} in {pages} page(s)")
        return all_tags
