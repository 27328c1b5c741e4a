"""
Storefront HTTP client used by the order flow.

Wraps the storefront endpoints the order steps depend on:
- GET  /api/plans/{id}
- POST /api/promo/validate
- POST /api/upload
- POST /api/orders
"""

import logging
from typing import Any, Dict, Optional

import httpx

from storefront.ordering.draft import PlanDetail
from storefront.pricing import PromoValidation

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """A storefront call failed in transport or answered non-2xx."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"{fallback}: {response.reason_phrase or response.status_code}"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"{fallback}: {response.reason_phrase or response.status_code}"


class StorefrontClient:
    """Thin async client; every method raises UpstreamError on failure."""

    def __init__(
        self,
        base_url: str,
        cookies: Optional[Dict[str, str]] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http_client = httpx.AsyncClient(
            base_url=base_url,
            cookies=cookies,
            timeout=timeout,
            transport=transport,
        )

    async def close(self):
        await self._http_client.aclose()

    async def _request(self, method: str, url: str, fallback: str, **kwargs) -> httpx.Response:
        try:
            return await self._http_client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise UpstreamError(f"{fallback}: {e}")

    async def get_plan(self, plan_id: str) -> Optional[PlanDetail]:
        """Plan detail, or None when the plan does not exist."""
        response = await self._request("GET", f"/api/plans/{plan_id}", "Failed to fetch plan")
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise UpstreamError(_error_message(response, "Failed to fetch plan"), response.status_code)
        return PlanDetail.from_dict(response.json())

    async def validate_promo(self, code: str, plan_id: Optional[str]) -> PromoValidation:
        response = await self._request(
            "POST",
            "/api/promo/validate",
            "Failed to validate promo code",
            json={"code": code, "planId": plan_id},
        )
        if not response.is_success:
            raise UpstreamError(
                _error_message(response, "Failed to validate promo code"), response.status_code
            )
        data = response.json()
        return PromoValidation(
            valid=bool(data.get("valid")),
            message=data.get("message") or "",
            discount_percent=data.get("discount"),
        )

    async def upload_file(
        self,
        file_name: str,
        content: bytes,
        content_type: str,
        user_id: str,
        order_id: Optional[str] = None,
        is_order_screenshot: bool = False,
        use_cloud_storage: bool = True,
    ) -> Dict[str, Any]:
        form = {
            "userId": user_id,
            "isOrderScreenshot": "true" if is_order_screenshot else "false",
            "useCloudStorage": "true" if use_cloud_storage else "false",
        }
        if order_id:
            form["orderId"] = order_id
        response = await self._request(
            "POST",
            "/api/upload",
            "Failed to upload file",
            data=form,
            files={"file": (file_name, content, content_type)},
        )
        if not response.is_success:
            raise UpstreamError(_error_message(response, "Failed to upload file"), response.status_code)
        return response.json()

    async def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", "/api/orders", "Failed to place order", json=payload)
        if not response.is_success:
            raise UpstreamError(_error_message(response, "Failed to place order."), response.status_code)
        return response.json()
