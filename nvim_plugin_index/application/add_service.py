import logging

import aiohttp

from nvim_plugin_index.application.index_service import Enricher
from nvim_plugin_index.domain.merge import PluginSet
from nvim_plugin_index.domain.models import PluginRecord, RepositoryReference
from nvim_plugin_index.infrastructure.github_client import GitHubRestClient
from nvim_plugin_index.infrastructure.index_store import JsonIndexStore

logger = logging.getLogger(__name__)


class AddService:
    """Adds a single, user-chosen plugin to the index."""

    def __init__(self, github_client: GitHubRestClient, index_store: JsonIndexStore):
        self.enricher = Enricher(github_client)
        self.index_store = index_store

    async def add(self, repository: str) -> bool:
        """
        Validates and enriches `owner/name`, then appends it to the index.
        Any failure aborts before the index is touched.

        Returns:
            bool: False if a plugin with the same name and owner was already indexed.
        """
        reference = RepositoryReference.parse(repository)

        async with aiohttp.ClientSession() as session:
            plugin: PluginRecord = await self.enricher.enrich(session, reference)

        plugins = PluginSet(self.index_store.load())
        if not plugins.add(plugin):
            logger.info(f"Plugin `{plugin.owner}/{plugin.name}` is already indexed, nothing to do.")
            return False

        self.index_store.save(plugins.sorted(), pretty=True)
        logger.info(f"🎉 Added plugin `{plugin.owner}/{plugin.name}`")
        return True
