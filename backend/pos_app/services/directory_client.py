"""
HTTP client for the inventory / customer directory service.

The directory owns products and customers; this backend only reads products
and creates customers through it. Failures are logged and surfaced as
DirectoryServiceError. No retries are attempted.
"""
import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from pos_app.config import settings
from pos_app.exceptions import DirectoryServiceError
from pos_app.schemas.catalog import CatalogProduct, Customer, CustomerCreate

logger = logging.getLogger(__name__)


class DirectoryClient:
    """Generic request interface to the directory REST API"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.directory_api_url).rstrip("/")
        self.token = token if token is not None else settings.directory_api_token
        self.timeout = timeout or settings.directory_timeout_seconds
        self._transport = transport

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def request(self, method: str, endpoint: str, data: Optional[dict] = None) -> Any:
        """
        Send a request to the directory and return the decoded JSON body.

        Args:
            method: HTTP method
            endpoint: Path relative to the directory base URL (e.g. "/customers")
            data: Optional JSON body

        Raises:
            DirectoryServiceError: on transport failure, non-2xx status or invalid JSON
        """
        url = f"{self.base_url}{endpoint}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, json=data, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"Directory request {method} {url} failed: {str(e)}")
            raise DirectoryServiceError(f"Directory service unreachable: {str(e)}", endpoint=endpoint)

        if response.is_error:
            logger.error(f"Directory request {method} {url} returned {response.status_code}: {response.text[:200]}")
            raise DirectoryServiceError(
                f"Directory request failed: {response.status_code} {response.reason_phrase}",
                endpoint=endpoint,
                status=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            logger.error(f"Directory request {method} {url} returned invalid JSON")
            raise DirectoryServiceError("Directory returned an invalid response", endpoint=endpoint)

    async def list_products(self) -> List[CatalogProduct]:
        payload = await self.request("GET", "/inventory/products")
        return self._parse_rows(CatalogProduct, payload, "/inventory/products")

    async def list_customers(self) -> List[Customer]:
        payload = await self.request("GET", "/customers")
        return self._parse_rows(Customer, payload, "/customers")

    async def create_customer(self, data: CustomerCreate) -> Customer:
        payload = await self.request("POST", "/customers", data.model_dump(exclude_none=True))
        try:
            return Customer.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Directory returned an unexpected customer record: {str(e)}")
            raise DirectoryServiceError("Directory returned an invalid customer", endpoint="/customers")

    @staticmethod
    def _parse_rows(model, payload: Any, endpoint: str) -> list:
        if not isinstance(payload, list):
            raise DirectoryServiceError("Directory returned an invalid response", endpoint=endpoint)
        try:
            return [model.model_validate(row) for row in payload]
        except ValidationError as e:
            logger.error(f"Directory returned malformed rows from {endpoint}: {str(e)}")
            raise DirectoryServiceError("Directory returned malformed records", endpoint=endpoint)


directory_client = DirectoryClient()
