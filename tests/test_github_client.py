import base64
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp

from nvim_plugin_index.domain.exceptions import FetchError, RateLimitExceededException
from nvim_plugin_index.domain.models import RepositoryReference
from nvim_plugin_index.infrastructure.github_client import GitHubRestClient

REFERENCE = RepositoryReference(owner="folke", name="lazy.nvim")


def _response(status, payload=None, headers=None, error=None):
    response = AsyncMock()
    response.status = status
    response.headers = headers or {}
    response.raise_for_status = MagicMock(side_effect=error)
    response.json = AsyncMock(return_value=payload)
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=False)
    return response


def _session(*responses):
    session = AsyncMock()
    session.get = MagicMock(side_effect=list(responses))
    return session


class TestGitHubRestClient(unittest.TestCase):
    def test_headers_are_dict(self) -> None:
        token = "test-token"
        client = GitHubRestClient(token=token)

        self.assertIsInstance(client.headers, dict)
        self.assertEqual(client.headers["Authorization"], f"Bearer {token}")

    def test_headers_include_user_agent(self) -> None:
        client = GitHubRestClient(token="t")
        self.assertIn("User-Agent", client.headers)
        self.assertIn("Accept", client.headers)


class TestFetchRepository(unittest.IsolatedAsyncioTestCase):
    async def test_repository_url_and_payload(self) -> None:
        client = GitHubRestClient(token="test-token")
        session = _session(_response(200, {"name": "lazy.nvim"}))

        payload = await client.fetch_repository(session, REFERENCE)

        self.assertEqual(payload, {"name": "lazy.nvim"})
        url = session.get.call_args.args[0]
        self.assertEqual(url, "https://api.github.com/repos/folke/lazy.nvim")

    async def test_not_found_is_not_retried(self) -> None:
        client = GitHubRestClient(token="test-token")
        not_found = aiohttp.ClientResponseError(
            request_info=MagicMock(), history=(), status=404, message="Not Found"
        )
        session = _session(_response(404, error=not_found))

        with patch("nvim_plugin_index.infrastructure.github_client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with self.assertRaises(FetchError) as raised:
                await client.fetch_repository(session, REFERENCE)

        self.assertEqual((raised.exception.owner, raised.exception.name), ("folke", "lazy.nvim"))
        self.assertIs(raised.exception.__cause__, not_found)
        self.assertEqual(session.get.call_count, 1)
        mock_sleep.assert_not_called()

    async def test_server_errors_are_retried(self) -> None:
        client = GitHubRestClient(token="test-token")
        session = _session(_response(503), _response(200, {"name": "lazy.nvim"}))

        with patch("nvim_plugin_index.infrastructure.github_client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            payload = await client.fetch_repository(session, REFERENCE)

        self.assertEqual(payload, {"name": "lazy.nvim"})
        self.assertEqual(mock_sleep.call_count, 1)

    async def test_403_retry_after_is_respected(self) -> None:
        """When GitHub returns 403 + Retry-After, the client sleeps and retries."""
        client = GitHubRestClient(token="test-token")
        session = _session(
            _response(403, headers={"Retry-After": "1"}),
            _response(200, {"name": "lazy.nvim"}),
        )

        with patch("nvim_plugin_index.infrastructure.github_client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await client.fetch_repository(session, REFERENCE)

        mock_sleep.assert_any_call(1)

    async def test_http_date_retry_after_falls_back_to_backoff(self) -> None:
        client = GitHubRestClient(token="test-token")
        session = _session(
            _response(429, headers={"Retry-After": "Wed, 21 Oct 2026 07:28:00 GMT"}),
            _response(200, {"name": "lazy.nvim"}),
        )

        with patch("nvim_plugin_index.infrastructure.github_client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            payload = await client.fetch_repository(session, REFERENCE)

        self.assertEqual(payload, {"name": "lazy.nvim"})
        self.assertEqual(mock_sleep.call_count, 1)

    async def test_exhausted_rate_limit_raises(self) -> None:
        client = GitHubRestClient(token="test-token")
        session = _session(
            _response(403, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1767225600"}),
        )

        with self.assertRaises(FetchError) as raised:
            await client.fetch_repository(session, REFERENCE)

        self.assertIsInstance(raised.exception.__cause__, RateLimitExceededException)
        self.assertIn("2026-01-01", raised.exception.__cause__.reset_at)

    async def test_connection_errors_give_up_after_retries(self) -> None:
        client = GitHubRestClient(token="test-token")
        session = AsyncMock()
        session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("connection reset"))

        with patch("nvim_plugin_index.infrastructure.github_client.asyncio.sleep", new_callable=AsyncMock):
            with self.assertRaises(FetchError) as raised:
                await client.fetch_repository(session, REFERENCE)

        self.assertIsInstance(raised.exception.__cause__, aiohttp.ClientConnectionError)
        self.assertGreater(session.get.call_count, 1)


class TestFetchFileContent(unittest.IsolatedAsyncioTestCase):
    async def test_readme_is_decoded(self) -> None:
        client = GitHubRestClient(token="test-token")
        content = base64.b64encode(b"- folke/lazy.nvim\n").decode("ascii")
        session = _session(_response(200, {"encoding": "base64", "content": content}))

        text = await client.fetch_file_content(
            session, RepositoryReference(owner="rockerBOO", name="awesome-neovim"), "README.md"
        )

        self.assertEqual(text, "- folke/lazy.nvim\n")
        self.assertTrue(session.get.call_args.args[0].endswith("/repos/rockerBOO/awesome-neovim/contents/README.md"))
