"""
Proxy Endpoint Registry

Relays used to reach the upstream content API when direct requests are
blocked. Order is priority: the fetcher walks the list top to bottom.
"""

from enum import Enum
from typing import Optional, Tuple
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field


class ResponseShape(str, Enum):
    """How a relay hands back the upstream body."""
    DIRECT = "direct"    # relay body is the upstream body
    WRAPPED = "wrapped"  # relay body is JSON with the upstream body as a string field


class ProxyEndpoint(BaseModel):
    """
    Immutable relay descriptor.

    ``url_template`` contains a single ``{url}`` placeholder that receives
    the percent-encoded target URL.
    """
    label: str
    url_template: str
    response_shape: ResponseShape = ResponseShape.DIRECT
    inner_field: Optional[str] = Field(None, description="Field holding the body for wrapped relays")

    model_config = ConfigDict(frozen=True)

    def build_url(self, target_url: str) -> str:
        return self.url_template.format(url=quote(target_url, safe=""))


PROXY_ENDPOINTS: Tuple[ProxyEndpoint, ...] = (
    ProxyEndpoint(
        label="corsproxy",
        url_template="https://corsproxy.io/?url={url}",
    ),
    ProxyEndpoint(
        label="allorigins-raw",
        url_template="https://api.allorigins.win/raw?url={url}",
    ),
    ProxyEndpoint(
        label="codetabs",
        url_template="https://api.codetabs.com/v1/proxy?quest={url}",
    ),
    ProxyEndpoint(
        label="allorigins-get",
        url_template="https://api.allorigins.win/get?url={url}",
        response_shape=ResponseShape.WRAPPED,
        inner_field="contents",
    ),
)

# Autocomplete is best-effort; only the two most reliable relays.
SUGGEST_ENDPOINTS: Tuple[ProxyEndpoint, ...] = PROXY_ENDPOINTS[:2]
