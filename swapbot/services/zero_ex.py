import logging
from typing import Any, Dict, List, Optional

import httpx

from swapbot.domain.models import SwapIntent, PriceResponse, QuoteResponse
from swapbot.exceptions import AggregatorHttpError


class ZeroExClient:
    """
    Thin sync HTTP wrapper around the 0x swap API.

    Endpoints:
      GET {base_url}/swap/v1/sources        ?chainId
      GET {base_url}/swap/permit2/price     ?<SwapIntent params>
      GET {base_url}/swap/permit2/quote     ?<SwapIntent params>

    Every call is attempted once. A non-2xx answer raises AggregatorHttpError;
    the body is logged, never used as a result.
    """

    SOURCES_PATH = "/swap/v1/sources"
    PRICE_PATH = "/swap/permit2/price"
    QUOTE_PATH = "/swap/permit2/quote"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.0x.org",
        version: str = "v2",
        timeout_sec: float = 15.0,
        http: Optional[httpx.Client] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Content-Type": "application/json",
            "0x-api-key": api_key,
            "0x-version": version,
        }
        self._http = http or httpx.Client(timeout=timeout_sec)
        self._logger = logging.getLogger(self.__class__.__name__)

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _get(self, path: str, params: Dict[str, str]) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            r = self._http.get(url, params=params, headers=self._headers)
        except httpx.HTTPError as exc:
            self._logger.error("GET %s failed: %s", url, exc)
            raise AggregatorHttpError(url, None, msg=f"Error fetching data from {url}: {exc}") from exc

        if not r.is_success:
            self._logger.warning("non-2xx %s: %s %s", url, r.status_code, r.text)
            raise AggregatorHttpError(url, r.status_code, r.text)
        return r.json()

    def get_sources(self, chain_id: int) -> List[str]:
        data = self._get(self.SOURCES_PATH, {"chainId": str(chain_id)})
        return list((data.get("sources") or {}).keys())

    def get_price(self, intent: SwapIntent) -> PriceResponse:
        return PriceResponse.model_validate(self._get(self.PRICE_PATH, intent.to_params()))

    def get_quote(self, intent: SwapIntent) -> QuoteResponse:
        return QuoteResponse.model_validate(self._get(self.QUOTE_PATH, intent.to_params()))
