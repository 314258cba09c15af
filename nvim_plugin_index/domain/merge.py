from typing import Dict, Iterable, Iterator, List, Set, Tuple

from nvim_plugin_index.domain.models import PluginRecord, RepositoryReference


def preserved_references(
    existing: Iterable[PluginRecord],
    scraped: Set[RepositoryReference],
) -> Set[RepositoryReference]:
    """
    References of already-indexed plugins that the latest scrape did not find.
    These are usually plugins added by hand with the `add` command.
    """
    return {plugin.to_reference() for plugin in existing} - scraped


def merge_references(
    existing: Iterable[PluginRecord],
    scraped: Set[RepositoryReference],
) -> Set[RepositoryReference]:
    """Union of the scraped references and the preserved ones."""
    return set(scraped) | preserved_references(existing, scraped)


class PluginSet:
    """
    Collection of plugin records that holds at most one record per (name, owner).
    The first record added for an identity wins.
    """

    def __init__(self, plugins: Iterable[PluginRecord] = ()):
        self._plugins: Dict[Tuple[str, str], PluginRecord] = {}
        for plugin in plugins:
            self.add(plugin)

    def add(self, plugin: PluginRecord) -> bool:
        """Adds the plugin and returns True, or returns False if its identity is already present."""
        if plugin.identity in self._plugins:
            return False
        self._plugins[plugin.identity] = plugin
        return True

    def __contains__(self, plugin: PluginRecord) -> bool:
        return plugin.identity in self._plugins

    def __iter__(self) -> Iterator[PluginRecord]:
        return iter(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)

    def sorted(self) -> List[PluginRecord]:
        """Records ordered by (owner, name) so the written file is stable across runs."""
        return sorted(self._plugins.values(), key=lambda plugin: (plugin.owner, plugin.name))
