import uuid
from pathlib import Path
from typing import Dict, Iterable, Mapping, Tuple, Union

HeaderSource = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def generate_correlation_id() -> str:
    """Generate a new correlation ID for request tracing."""
    return uuid.uuid4().hex


def get_app_dir() -> Path:
    """Return the mox configuration directory under the user's home."""
    return Path.home() / '.mox'


def normalize_headers(headers: HeaderSource) -> Dict[str, str]:
    """Lower-case header names, folding repeated headers into one value."""
    items = headers.items() if isinstance(headers, Mapping) else headers
    normalized: Dict[str, str] = {}
    for key, value in items:
        name = key.lower()
        if name in normalized:
            separator = '; ' if name == 'cookie' else ', '
            normalized[name] = f'{normalized[name]}{separator}{value}'
        else:
            normalized[name] = value
    return normalized


def join_url(base: str, path: str) -> str:
    """Append a request path (with query) to an upstream base URL."""
    if not path:
        return base
    if not path.startswith('/'):
        path = '/' + path
    return base.rstrip('/') + path
