class PluginIndexException(Exception):
    """Base exception for all plugin-index errors."""
    pass

class ConfigurationError(PluginIndexException):
    """Raised when required configuration (e.g. the GitHub token) is missing."""
    pass

class InvalidRepositoryError(PluginIndexException):
    """Raised when a user-supplied repository is not in owner/name format."""
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Repository must be in user/repo format (e.g., foo/bar), got `{value}`.")

class FetchError(PluginIndexException):
    """Raised when fetching data for a repository from GitHub fails."""
    def __init__(self, owner: str, name: str, message: str = "Failed to fetch repository."):
        self.owner = owner
        self.name = name
        super().__init__(f"{message} ({owner}/{name})")

class RateLimitExceededException(PluginIndexException):
    """Raised when the GitHub REST rate limit is hit."""
    def __init__(self, reset_at: str, message: str = "GitHub API rate limit exceeded."):
        self.reset_at = reset_at
        super().__init__(f"{message} Resets at: {reset_at}")

class DecodeError(PluginIndexException):
    """Raised when file content returned by GitHub cannot be decoded to text."""
    pass

class PersistenceError(PluginIndexException):
    """Raised when the index file cannot be read, parsed or written."""
    pass
