import aiohttp
import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from nvim_plugin_index.domain.exceptions import FetchError, RateLimitExceededException
from nvim_plugin_index.domain.models import RepositoryReference
from nvim_plugin_index.infrastructure.acl import GitHubTranslator

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=60, connect=10)
MAX_RETRIES = 4
RETRYABLE_STATUSES = {500, 502, 503, 504}

def _retry_after_seconds(retry_after: str, attempt: int) -> float:
    # Retry-After may also be an HTTP date; fall back to exponential backoff then
    try:
        return int(retry_after)
    except ValueError:
        return (2 ** attempt) + random.uniform(0, 1)

class GitHubRestClient:
    """
    Client for the two GitHub REST endpoints the index needs: repository
    metadata and file contents. Handles authentication, retries and rate limits.
    """

    def __init__(self, token: str):
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": "nvim-plugin-index",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self.api_url = "https://api.github.com"

    async def fetch_repository(
        self,
        session: aiohttp.ClientSession,
        reference: RepositoryReference,
    ) -> Dict[str, Any]:
        """
        Fetches the raw repository object for `owner/name`.

        Raises:
            FetchError: If the request fails for any reason.
        """
        try:
            return await self._get_json(session, f"/repos/{reference.owner}/{reference.name}")
        except (aiohttp.ClientError, asyncio.TimeoutError, RateLimitExceededException, ValueError) as e:
            raise FetchError(reference.owner, reference.name) from e

    async def fetch_file_content(
        self,
        session: aiohttp.ClientSession,
        reference: RepositoryReference,
        path: str,
    ) -> str:
        """
        Fetches a file from the repository's default branch and returns its decoded text.

        Raises:
            FetchError: If the request fails.
            DecodeError: If the file content cannot be decoded.
        """
        try:
            raw_content = await self._get_json(
                session, f"/repos/{reference.owner}/{reference.name}/contents/{path}"
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, RateLimitExceededException, ValueError) as e:
            raise FetchError(reference.owner, reference.name, f"Failed to fetch `{path}`.") from e

        return GitHubTranslator.decode_content(raw_content)

    async def _get_json(self, session: aiohttp.ClientSession, path: str) -> Any:
        url = f"{self.api_url}{path}"
        last_error: Optional[Exception] = None

        for attempt in range(MAX_RETRIES):
          try:
            async with session.get(url, headers=self.headers, timeout=REQUEST_TIMEOUT) as response:
                if response.status in {403, 429}:
                    # Secondary rate limit (abuse detection) tells us how long to wait
                    retry_after = response.headers.get('Retry-After')
                    if retry_after:
                        sleep_time = _retry_after_seconds(retry_after, attempt)
                        logger.warning(f"Secondary rate limit ({response.status}). Sleeping {sleep_time:.0f}s...")
                        await asyncio.sleep(sleep_time)
                        continue

                    if response.headers.get('X-RateLimit-Remaining') == '0':
                        reset = int(response.headers.get('X-RateLimit-Reset', 0))
                        reset_at = datetime.fromtimestamp(reset, tz=timezone.utc).isoformat()
                        raise RateLimitExceededException(reset_at=reset_at)

                if response.status in RETRYABLE_STATUSES:
                  sleep_time = (2 ** attempt) + random.uniform(0, 1)
                  logger.warning(
                      f"Server error ({response.status}) for {path}, "
                      f"retrying in {sleep_time:.1f}s (attempt {attempt + 1}/{MAX_RETRIES})..."
                  )
                  last_error = aiohttp.ClientResponseError(
                      response.request_info, response.history, status=response.status
                  )
                  await asyncio.sleep(sleep_time)
                  continue

                response.raise_for_status()
                return await response.json()

          except aiohttp.ClientResponseError:
              # 401, 404 and other client errors will not improve on retry
              raise

          except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
              last_error = e
              sleep_time = (2 ** attempt) + random.uniform(0, 1)
              logger.warning(
                  f"Request failed (attempt {attempt + 1}/{MAX_RETRIES}): {e}. "
                  f"Retrying in {sleep_time:.1f}s..."
              )
              await asyncio.sleep(sleep_time)

        if last_error is not None:
            raise last_error
        raise aiohttp.ClientError(f"Failed to fetch {path} after {MAX_RETRIES} attempts.")
