"""Registry ingestion: normalization, history merging and update runs"""

from .ages import AgeRecord, ages_from_history, parse_date, update_age
from .errors import (
    BootstrapError, RecordCountError, RegistryError, RegistryFetchError,
    RegistryParseError, SizeRegressionError, StateLoadError
)
from .history import History, RegistryState, update_registration
from .prefixes import build_prefix_key, sort_prefix_keys, sortable_prefix

__all__ = [
    "AgeRecord", "ages_from_history", "parse_date", "update_age",
    "BootstrapError", "RecordCountError", "RegistryError", "RegistryFetchError",
    "RegistryParseError", "SizeRegressionError", "StateLoadError",
    "History", "RegistryState", "update_registration",
    "build_prefix_key", "sort_prefix_keys", "sortable_prefix",
]
