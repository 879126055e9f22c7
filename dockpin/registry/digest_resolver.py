"""
Manifest digest lookups.

The registry's Docker-Content-Digest header is authoritative; digests are never
computed client-side. Lookups for many tags run as a bounded fan-out whose
results come back in input order, not completion order.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from dockpin.models.registry import DigestRecord, RegistryEndpoint
from dockpin.registry.errors import ImageNotFound, RegistryError, Unauthorized
from dockpin.registry.transport import RegistryTransport

logger = logging.getLogger(__name__)

MANIFEST_V2_MEDIA_TYPE = "application/vnd.docker.distribution.manifest.v2+json"
DIGEST_HEADER = "Docker-Content-Digest"
PROGRESS_LOG_INTERVAL = 100


class DigestResolver:
    """Resolves tags to manifest digests"""

    def __init__(self, transport: RegistryTransport, concurrency: int = 8):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.transport = transport
        self.concurrency = concurrency

    async def get_digest(
        self,
        endpoint: RegistryEndpoint,
        repository: str,
        tag: str,
        auth_header: Optional[str] = None,
    ) -> str:
        """
        Get the manifest digest of a tag with a HEAD request.

        Raises:
            ImageNotFound: 404
            Unauthorized: 401
            RegistryError: Anything else, including a 200 without the digest header
        """
        url = endpoint.manifest_url(repository, tag)
        headers = {"Accept": MANIFEST_V2_MEDIA_TYPE}
        if auth_header:
            headers["Authorization"] = auth_header

        logger.debug(f"Getting digest for image '{endpoint.host}/{repository}:{tag}'")
        response = await self.transport.request("HEAD", url, headers=headers, allow_redirects=True)

        if response.status == 200:
            digest = response.headers.get(DIGEST_HEADER)
            if digest:
                return digest
            raise RegistryError(
                f"{DIGEST_HEADER} header was not set in the response",
                endpoint=url, status=200, repository=repository, tag=tag,
            )
        if response.status == 404:
            raise ImageNotFound(
                "Image not found in registry", endpoint=url, status=404, repository=repository, tag=tag
            )
        if response.status == 401:
            raise Unauthorized(
                "Unauthorized registry access", endpoint=url, status=401, repository=repository, tag=tag
            )
        raise RegistryError(
            "Error getting manifest digest", endpoint=url, status=response.status, repository=repository, tag=tag
        )

    async def get_digests(
        self,
        endpoint: RegistryEndpoint,
        repository: str,
        tags: Sequence[str],
        auth_header: Optional[str] = None,
    ) -> List[DigestRecord]:
        """
        Resolve digests for many tags with bounded concurrency.

        Tags whose manifest has vanished (404) are skipped; the listing and the
        lookup race, so that isn't an error. Any other failure cancels the
        outstanding lookups and propagates.

        Returns:
            DigestRecords in the order of `tags`, minus skipped tags
        """
        total = len(tags)
        if total == 0:
            return []

        semaphore = asyncio.Semaphore(self.concurrency)
        processed = 0

        async def lookup(tag: str) -> Optional[DigestRecord]:
            nonlocal processed
            async with semaphore:
                try:
                    digest = await self.get_digest(endpoint, repository, tag, auth_header)
                    record = DigestRecord(tag=tag, digest=digest)
                except ImageNotFound:
                    logger.debug(f"Cannot find image digest for {repository}:{tag}, skipping")
                    record = None
            processed += 1
            if processed % PROGRESS_LOG_INTERVAL == 0 or processed == total:
                logger.info(f"Processed {processed} of {total} tags")
            return record

        tasks = [asyncio.ensure_future(lookup(tag)) for tag in tags]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Let cancelled lookups unwind before the error propagates
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return [record for record in results if record is not None]
