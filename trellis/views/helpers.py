"""
Default view helpers.

Every view sees these names in its rendering context, e.g.
``<link href="{{ static_url('css/app.css') }}">``.
"""

from typing import Any, Dict
from urllib.parse import quote, urlencode
from jinja2.utils import htmlsafe_json_dumps
from markupsafe import Markup


def url(path: str, **query: Any) -> str:
    """Build an application URL with an optional query string."""
    target = "/" + quote(path.lstrip("/"), safe="/:@")
    params = {k: v for k, v in query.items() if v is not None}
    if params:
        target += "?" + urlencode(params, doseq=True)
    return target


def static_url(path: str, prefix: str = "/static") -> str:
    """URL of a static asset."""
    return f"{prefix.rstrip('/')}/{path.lstrip('/')}"


def to_json(value: Any) -> Markup:
    """Serialize ``value`` for embedding inside a ``<script>`` block."""
    return htmlsafe_json_dumps(value)


DEFAULT_HELPERS: Dict[str, Any] = {
    "url": url,
    "static_url": static_url,
    "to_json": to_json,
}
