import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import List, Union

from pydantic import TypeAdapter, ValidationError

from nvim_plugin_index.domain.exceptions import PersistenceError
from nvim_plugin_index.domain.models import PluginRecord

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "plugins.json"

_records_adapter = TypeAdapter(List[PluginRecord])


class JsonIndexStore:
    """
    Reads and writes the plugin index, a JSON array of plugin records.
    Writes go through a temporary file so an interrupted run never leaves a truncated index.
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_OUTPUT):
        self.path = Path(path)

    def load(self) -> List[PluginRecord]:
        """
        Returns the records in the index, or an empty list if the file does not exist.

        Raises:
            PersistenceError: If the file cannot be read or does not hold valid records.
        """
        if not self.path.exists():
            logger.info(f"No existing index at {self.path}, starting empty.")
            return []

        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Failed to read index {self.path}.") from e

        try:
            return _records_adapter.validate_json(raw)
        except ValidationError as e:
            raise PersistenceError(f"Index {self.path} is not a valid plugin list.") from e

    def _file_mode(self) -> int:
        # mkstemp creates 0600 files; keep the mode of the index being replaced
        try:
            return stat.S_IMODE(os.stat(self.path).st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask

    def save(self, plugins: List[PluginRecord], pretty: bool = False) -> None:
        """
        Overwrites the index with the given records.

        Args:
            plugins (List[PluginRecord]): Records to persist, in order.
            pretty (bool): Indent the JSON for human editing.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        payload = [plugin.model_dump(mode="json", by_alias=True) for plugin in plugins]
        if pretty:
            serialized = json.dumps(payload, indent=2, ensure_ascii=False)
        else:
            serialized = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)

        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    tmp.write(serialized)
                os.chmod(tmp_name, self._file_mode())
                os.replace(tmp_name, self.path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to write index {self.path}.") from e

        logger.info(f"Wrote {len(plugins)} plugins to {self.path}.")
