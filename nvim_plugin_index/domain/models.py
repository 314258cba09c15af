from datetime import datetime
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict

from nvim_plugin_index.domain.exceptions import InvalidRepositoryError


class RepositoryReference(BaseModel):
    """
    Immutable reference to a GitHub repository, as scraped or typed by a user.
    Two references are equal when owner and name match exactly (case-sensitive).
    """
    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1, description="Login name of the repository owner")
    name: str = Field(..., min_length=1, description="Name of the repository")

    @classmethod
    def parse(cls, value: str) -> "RepositoryReference":
        """
        Parses a user-supplied `owner/name` string.

        Raises:
            InvalidRepositoryError: If the value does not split into exactly two non-empty parts.
        """
        parts = value.split("/")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise InvalidRepositoryError(value)
        return cls(owner=parts[0], name=parts[1])

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


class PluginRecord(BaseModel):
    """
    Metadata snapshot of a Neovim plugin repository.
    Persisted with camelCase keys; the owner is stored under `user`.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., description="Name of the repository")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    description: Optional[str] = None
    stars: int = Field(0, ge=0, description="Total number of stargazers")
    topics: Optional[List[str]] = None
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    owner: str = Field(..., alias="user", description="Login name of the repository owner")
    watchers: int = Field(0, ge=0, description="Number of subscribers")

    @property
    def identity(self) -> Tuple[str, str]:
        # Only name and owner decide whether two records are the same plugin.
        return (self.name, self.owner)

    def to_reference(self) -> RepositoryReference:
        return RepositoryReference(owner=self.owner, name=self.name)
