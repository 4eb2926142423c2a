from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter, Retry

from .config import AgentConfig

NO_CACHE_HEADERS = {"Cache-Control": "no-cache"}


class HttpClient:
    """requests session shared by the Jupiter client and the catalog refresh."""

    def __init__(self, timeout: float, max_retries: int, user_agent: str = "dex-bootstrap/1.0") -> None:
        self.timeout = timeout
        self.session = requests.Session()
        # retries cover throttling and gateway errors only, never a 4xx answer
        adapter = HTTPAdapter(
            max_retries=Retry(
                total=max_retries,
                backoff_factor=0.2,
                status_forcelist=(429, 502, 503, 504),
                allowed_methods=("GET",),
                raise_on_status=False,
            )
        )
        for scheme in ("https://", "http://"):
            self.session.mount(scheme, adapter)
        self.session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})

    @classmethod
    def from_config(cls, config: AgentConfig) -> "HttpClient":
        return cls(timeout=config.request_timeout, max_retries=config.retries)

    def fetch(self, url: str, params: Optional[Dict[str, str]] = None, fresh: bool = False) -> requests.Response:
        """GET without status handling; ``fresh`` asks intermediaries to skip their cache."""
        headers = NO_CACHE_HEADERS if fresh else None
        return self.session.get(url, params=params, headers=headers, timeout=self.timeout)

    def fetch_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        response = self.fetch(url, params=params)
        response.raise_for_status()
        return response.json()
