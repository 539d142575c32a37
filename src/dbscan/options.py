from dataclasses import dataclass
from typing import Any

__all__ = [
    'DEFAULT_TAG_NAME',
    'DEFAULT_TIME_FORMAT',
    'ScanOptions',
    'resolve_options',
]

DEFAULT_TAG_NAME = 'pg'
DEFAULT_TIME_FORMAT = '%Y-%m-%d %H:%M:%S'


@dataclass(frozen=True)
class ScanOptions:
    """Options

    - tag_name: dataclass field metadata key holding the column name (default: `pg`)
    - time_format: strftime layout used when a timestamp is bound to a text field
      (default: `%Y-%m-%d %H:%M:%S`)
    """
    tag_name: str = DEFAULT_TAG_NAME
    time_format: str = DEFAULT_TIME_FORMAT

    def __post_init__(self):
        if not isinstance(self.tag_name, str) or not self.tag_name:
            raise ValueError('tag_name must be a non-empty string')
        if not isinstance(self.time_format, str) or not self.time_format:
            raise ValueError('time_format must be a non-empty string')


def resolve_options(options: ScanOptions | None = None, **kwargs: Any) -> ScanOptions:
    """Merge explicit keyword overrides into an options object.

    Keywords left as None fall back to `options` (or the defaults).
    """
    options = options or ScanOptions()
    overrides = {k: v for k, v in kwargs.items() if v is not None}
    if not overrides:
        return options
    return ScanOptions(**{
        'tag_name': options.tag_name,
        'time_format': options.time_format,
        **overrides,
        })
