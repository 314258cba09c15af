import logging
from dataclasses import dataclass, field
from typing import List, Set, Tuple

import aiohttp
from pydantic import ValidationError

from nvim_plugin_index.domain.exceptions import FetchError
from nvim_plugin_index.domain.extractor import extract_references
from nvim_plugin_index.domain.merge import PluginSet, merge_references, preserved_references
from nvim_plugin_index.domain.models import PluginRecord, RepositoryReference
from nvim_plugin_index.infrastructure.acl import GitHubTranslator
from nvim_plugin_index.infrastructure.github_client import GitHubRestClient
from nvim_plugin_index.infrastructure.index_store import JsonIndexStore
from nvim_plugin_index.infrastructure.markdown import markdown_events

logger = logging.getLogger(__name__)

# The curated list the index is built from
SOURCE_OWNER = "rockerBOO"
SOURCE_NAME = "awesome-neovim"
SOURCE_PATH = "README.md"


class Enricher:
    """Turns a repository reference into a plugin record using live GitHub metadata."""

    def __init__(self, github_client: GitHubRestClient):
        self.github_client = github_client

    async def enrich(self, session: aiohttp.ClientSession, reference: RepositoryReference) -> PluginRecord:
        """
        Raises:
            FetchError: If the metadata cannot be fetched or translated.
        """
        raw_repository = await self.github_client.fetch_repository(session, reference)
        try:
            return GitHubTranslator.to_domain(raw_repository, reference)
        except (ValidationError, ValueError, AttributeError) as e:
            raise FetchError(reference.owner, reference.name, "Unexpected repository payload.") from e


@dataclass
class IndexReport:
    plugins: List[PluginRecord] = field(default_factory=list)
    failures: List[Tuple[RepositoryReference, str]] = field(default_factory=list)


class IndexService:
    """
    Rebuilds the plugin index from the curated README.

    Plugins already in the index but missing from the README are kept and
    refreshed, so entries added by hand survive a rebuild. A failure to
    enrich one plugin is reported and skipped; it never aborts the run.
    """

    def __init__(
            self,
            github_client: GitHubRestClient,
            index_store: JsonIndexStore,
            source: RepositoryReference = RepositoryReference(owner=SOURCE_OWNER, name=SOURCE_NAME),
            source_path: str = SOURCE_PATH,
    ):
        self.github_client = github_client
        self.index_store = index_store
        self.enricher = Enricher(github_client)
        self.source = source
        self.source_path = source_path

    async def run(self) -> IndexReport:
        existing = self.index_store.load()
        report = IndexReport()

        async with aiohttp.ClientSession() as session:
            readme = await self.github_client.fetch_file_content(session, self.source, self.source_path)
            scraped = extract_references(markdown_events(readme))

            preserved = preserved_references(existing, scraped)
            references = merge_references(existing, scraped)
            logger.info(
                f"Found {len(scraped)} plugins in {self.source}/{self.source_path}, "
                f"keeping {len(preserved)} more from the existing index."
            )

            plugins = await self._enrich_all(session, references, report)

        report.plugins = plugins.sorted()
        self.index_store.save(report.plugins)

        logger.info(f"Indexed {len(report.plugins)} plugins, {len(report.failures)} failed.")
        return report

    async def _enrich_all(
        self,
        session: aiohttp.ClientSession,
        references: Set[RepositoryReference],
        report: IndexReport,
    ) -> PluginSet:
        plugins = PluginSet()

        for reference in references:
            try:
                plugin = await self.enricher.enrich(session, reference)
            except FetchError as e:
                cause = e.__cause__ or e
                logger.error(f"𐄂 {reference}: {cause}")
                report.failures.append((reference, str(cause)))
                continue

            if plugins.add(plugin):
                logger.info(f"✓ {plugin.owner}/{plugin.name}")

        return plugins
