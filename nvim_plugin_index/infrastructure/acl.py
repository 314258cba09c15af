import base64
import binascii
from datetime import datetime
from typing import Any, Dict, Optional

from nvim_plugin_index.domain.exceptions import DecodeError
from nvim_plugin_index.domain.models import PluginRecord, RepositoryReference


def _parse_timestamp(raw_date: Optional[str]) -> Optional[datetime]:
    if not raw_date:
        return None
    return datetime.fromisoformat(raw_date.replace("Z", "+00:00"))


class GitHubTranslator:
    """
    Anti-corruption layer that translates raw GitHub REST JSON responses into domain objects.
    """

    @staticmethod
    def to_domain(raw_repository: Dict[str, Any], reference: RepositoryReference) -> PluginRecord:
        """
        Transforms a raw `GET /repos/{owner}/{repo}` payload into a PluginRecord.

        The record name comes from the payload, the owner from the reference that
        was requested. Missing counts become zero; missing descriptive fields stay None.

        Args:
            raw_repository (Dict[str, Any]): The repository JSON object returned by GitHub.
            reference (RepositoryReference): The reference the payload was fetched for.

        Returns:
            PluginRecord: The domain model instance representing the plugin.
        """
        return PluginRecord(
            name=raw_repository.get('name') or reference.name,
            owner=reference.owner,
            description=raw_repository.get('description'),
            topics=raw_repository.get('topics'),
            created_at=_parse_timestamp(raw_repository.get('created_at')),
            updated_at=_parse_timestamp(raw_repository.get('updated_at')),
            stars=raw_repository.get('stargazers_count') or 0,
            watchers=raw_repository.get('subscribers_count') or 0,
        )

    @staticmethod
    def decode_content(raw_content: Dict[str, Any]) -> str:
        """
        Decodes a `GET /repos/{owner}/{repo}/contents/{path}` payload into text.

        Raises:
            DecodeError: If the payload is not a base64-encoded UTF-8 file.
        """
        if not isinstance(raw_content, dict):
            raise DecodeError("Expected a single file but got a directory listing.")

        encoding = raw_content.get('encoding')
        content = raw_content.get('content')
        if encoding != 'base64' or content is None:
            raise DecodeError(f"Unsupported content encoding: {encoding!r}.")

        try:
            # GitHub wraps base64 payloads at 60 characters
            return base64.b64decode("".join(content.split()), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise DecodeError("Failed to get decoded file content.") from e
