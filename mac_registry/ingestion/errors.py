"""Exceptions raised while updating the registry history"""


class RegistryError(Exception):
    """Base exception for registry update failures."""
    pass


class StateLoadError(RegistryError):
    """Raised when persisted history or ages cannot be read."""
    pass


class RegistryFetchError(RegistryError):
    """Raised when a registry file cannot be obtained."""
    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class SizeRegressionError(RegistryFetchError):
    """Raised when a download is much smaller than the stored snapshot."""
    def __init__(self, url: str, size_bytes: int, existing_bytes: int):
        self.size_bytes = size_bytes
        self.existing_bytes = existing_bytes
        super().__init__(
            f"Downloaded file {url} is substantially smaller than the existing snapshot: "
            f"cur:{size_bytes}, existing:{existing_bytes}",
            url=url,
        )


class RecordCountError(RegistryFetchError):
    """Raised when a registry has fewer rows than expected."""
    def __init__(self, url: str, records: int, min_records: int):
        self.records = records
        self.min_records = min_records
        super().__init__(
            f"{url} only has {records} records (wanted >= {min_records})",
            url=url,
        )


class RegistryParseError(RegistryFetchError):
    """Raised when a registry file is not parseable CSV."""
    pass


class BootstrapError(RegistryError):
    """Raised when bootstrap inputs conflict."""
    pass
