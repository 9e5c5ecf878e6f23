"""Exception types raised by the sync components."""


class SyncError(Exception):
    """Base class for every error raised by webflow_sync."""


class ConfigError(SyncError):
    """Required configuration is missing or invalid."""


class CmsApiError(SyncError):
    """The CMS returned a response we cannot use."""


class FetchRetriesExhausted(SyncError):
    """A page could not be fetched within the configured number of attempts."""

    def __init__(self, collection_id: str, offset: int, attempts: int):
        self.collection_id = collection_id
        self.offset = offset
        self.attempts = attempts
        super().__init__(
            f"Giving up on collection {collection_id} at offset {offset} "
            f"after {attempts} attempts"
        )
