"""Shopify order lookup adapter.

Fetches a single order by its display name (e.g. `C#1234`) through the Admin
GraphQL API, together with the custom metafields that drive the status
summary. Configuration comes from `Settings` (`SHOPIFY_DOMAIN`,
`SHOPIFY_ADMIN_TOKEN`, `SHOPIFY_API_VERSION`).
"""
from typing import Any, Dict, Optional
import json
import logging

import httpx

from ..config import Settings
from ..errors import BackendConfigurationError, BackendQueryError, BackendTransportError
from ..schemas import OrderRecord


logger = logging.getLogger(__name__)


# GraphQL alias -> metafield key in the `custom` namespace
METAFIELD_KEYS: Dict[str, str] = {
    "weeksSinceOrder": "weeks_since_order",
    "arrangeStatus": "arrange_status",
    "arrangedWith": "_nc_arranged_with",
    "incoming": "_nc_incoming_",
    "reserveIncoming": "_nc_reserve_incoming_",
    "readyToContact": "ready_to_contact",
    "needsFollowUp": "_nc_needs_follow_up_",
    "followUpNotes": "follow_up_notes",
    "owesReturn": "owes_return_or_exchange_",
    "returnNotes": "return_notes",
    "invoicedWith": "_back_end_incoming_invoice",
}


def _build_order_query() -> str:
    metafields = "\n".join(
        f'          {alias}: metafield(namespace: "custom", key: "{key}") {{ value }}'
        for alias, key in METAFIELD_KEYS.items()
    )
    return (
        "query ($q: String!) {\n"
        "  orders(first: 1, query: $q) {\n"
        "    edges {\n"
        "      node {\n"
        "          id\n"
        "          name\n"
        "          createdAt\n"
        "          displayFulfillmentStatus\n"
        "          fulfillments { createdAt status }\n"
        "          customer { displayName }\n"
        f"{metafields}\n"
        "      }\n"
        "    }\n"
        "  }\n"
        "}\n"
    )


ORDER_QUERY = _build_order_query()


def order_search_query(order_name: str) -> str:
    """Search string matching one order name across every status."""
    return f"name:'{order_name}' status:any"


class ShopifyClient:
    """Read-only Admin GraphQL client for order lookups."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._http = http_client

    def _configured(self) -> bool:
        return bool(self.settings.shopify_domain and self.settings.shopify_admin_token)

    @property
    def graphql_url(self) -> str:
        domain = (self.settings.shopify_domain or "").rstrip("/")
        return f"https://{domain}/admin/api/{self.settings.shopify_api_version}/graphql.json"

    def _headers(self) -> Dict[str, str]:
        return {
            "X-Shopify-Access-Token": self.settings.shopify_admin_token or "",
            "Content-Type": "application/json",
            "Shopify-API-Version": self.settings.shopify_api_version,
        }

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        if self._http is not None:
            return await self._http.post(self.graphql_url, json=payload, headers=self._headers())
        async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds) as client:
            return await client.post(self.graphql_url, json=payload, headers=self._headers())

    async def fetch_order(self, order_name: str) -> Optional[OrderRecord]:
        """Retrieve one order by name.

        Returns None when the query succeeds but nothing matches. Raises a
        `BackendError` subclass on configuration, transport or query errors.
        """
        if not self._configured():
            raise BackendConfigurationError("Shopify domain or admin token is not configured")

        payload = {"query": ORDER_QUERY, "variables": {"q": order_search_query(order_name)}}

        try:
            resp = await self._post(payload)
        except httpx.HTTPError as exc:
            raise BackendTransportError(f"Shopify request failed: {exc}", original_error=exc) from exc

        if not resp.is_success:
            raise BackendTransportError(f"Shopify HTTP {resp.status_code}", status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise BackendTransportError(
                f"Shopify returned a non-JSON body: {exc}", status_code=resp.status_code, original_error=exc
            ) from exc
        if not isinstance(data, dict):
            raise BackendTransportError("Shopify returned an unexpected JSON body", status_code=resp.status_code)

        errors = data.get("errors")
        if errors:
            raise BackendQueryError(f"Shopify GQL errors: {json.dumps(errors)}", errors=errors)
        nested_errors = (data.get("data") or {}).get("errors")
        if nested_errors:
            raise BackendQueryError(f"Shopify data.errors: {json.dumps(nested_errors)}", errors=nested_errors)

        edges = ((data.get("data") or {}).get("orders") or {}).get("edges") or []
        if not edges or not edges[0].get("node"):
            logger.info("Shopify lookup for %s returned no orders", order_name)
            return None

        return OrderRecord.model_validate(edges[0]["node"])
