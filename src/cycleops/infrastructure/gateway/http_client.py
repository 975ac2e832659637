"""
HTTP client separating transport concerns from gateway logic.

Gateway calls carry a bounded timeout and are not retried by default: a
duplicate POST could create two orders, so retry policy belongs to the
caller.
"""

from typing import Any, Dict, Optional, Tuple
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from cycleops.constants import DEFAULT_GATEWAY_TIMEOUT_SECONDS
from cycleops.logging import get_logger


class HttpClient:
    """requests.Session wrapper with a base URL and a default timeout."""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_GATEWAY_TIMEOUT_SECONDS,
        max_retries: int = 0,
        backoff_factor: float = 0.3,
        auth: Optional[Tuple[str, str]] = None,
    ):
        """
        Args:
            base_url: Base URL for all requests
            session: Optional existing session to use
            timeout: Request timeout in seconds
            max_retries: Transport-level retries for idempotent methods only
            backoff_factor: Backoff factor for retries
            auth: Optional basic-auth credentials
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.auth = auth
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")
        self.session = session or self._create_session(max_retries, backoff_factor)

    def _create_session(self, max_retries: int, backoff_factor: float) -> requests.Session:
        session = requests.Session()

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        url = self._build_url(endpoint)
        self.logger.debug(f"GET {url}")
        response = self.session.get(
            url,
            params=params,
            auth=self.auth,
            timeout=kwargs.pop("timeout", self.timeout),
            **kwargs,
        )
        self._log_response(response)
        return response

    def post(self, endpoint: str, json: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        url = self._build_url(endpoint)
        self.logger.debug(f"POST {url}")
        response = self.session.post(
            url,
            json=json,
            auth=self.auth,
            timeout=kwargs.pop("timeout", self.timeout),
            **kwargs,
        )
        self._log_response(response)
        return response

    def _build_url(self, endpoint: str) -> str:
        if endpoint.startswith("http"):
            return endpoint
        return urljoin(self.base_url + "/", endpoint.lstrip("/"))

    def _log_response(self, response: requests.Response) -> None:
        self.logger.debug(
            f"Response: {response.status_code} - {len(response.content)} bytes",
            status_code=response.status_code,
        )

    def close(self) -> None:
        if self.session:
            self.session.close()
