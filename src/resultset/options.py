from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from resultset.loaders import iterdict_data_loader
from resultset.temporal import resolve_zone

from libb import ConfigOptions

__all__ = [
    'CursorOptions',
]


@dataclass
class CursorOptions(ConfigOptions):
    """Options

    - time_zone: zone for date, time and timestamp accessors (default: UTC)
    - fetch_size: advisory fetch size; accepted and ignored (default: 0)
    - data_loader: callable used by load_data (default: iterdict_data_loader)
    """
    time_zone: str = 'UTC'
    fetch_size: int = 0
    data_loader: Callable[..., Any] | None = None

    def __post_init__(self):
        resolve_zone(self.time_zone)
        if self.fetch_size < 0:
            raise ValueError('fetch_size must be >= 0')
        if self.data_loader is None:
            self.data_loader = iterdict_data_loader
