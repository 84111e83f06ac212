"""DNS/CDN provider client"""
import abc
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from app.core.config import Settings, settings
from app.core.exceptions import (
    ProviderError,
    ProviderNotFound,
    ProviderRateLimited,
    ProviderRejected,
    ProviderUnauthenticated,
    ProviderUnavailable,
    ProviderUnknownError,
)
from app.schemas.provider import AnalyticsSnapshot, HostnameInfo, SSLInfo

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600


class ProviderConfig(BaseModel):
    """Credentials and limits handed to a provider client"""
    api_url: str
    api_token: str
    zone_id: Optional[str] = None
    timeout: float = 15.0

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "ProviderConfig":
        return cls(
            api_url=config.PROVIDER_API_URL,
            api_token=config.PROVIDER_API_TOKEN,
            zone_id=config.PROVIDER_ZONE_ID,
            timeout=config.PROVIDER_TIMEOUT,
        )


class ProviderClient(abc.ABC):
    """
    Capability interface over the DNS/CDN provider.

    Implementations raise `ProviderError` subclasses and never retry.
    """

    @abc.abstractmethod
    async def register_hostname(self, hostname: str) -> HostnameInfo:
        ...

    @abc.abstractmethod
    async def get_hostname_status(self, hostname_ref: str) -> HostnameInfo:
        ...

    @abc.abstractmethod
    async def force_ssl_issuance(self, hostname_ref: str) -> SSLInfo:
        ...

    @abc.abstractmethod
    async def upsert_dns_record(self, zone_ref: str, record: Any, record_ref: Optional[str] = None) -> str:
        """Create the record, or update `record_ref` in place. Returns the provider record id."""

    @abc.abstractmethod
    async def fetch_analytics(self, zone_ref: str, day: date) -> AnalyticsSnapshot:
        ...

    async def aclose(self) -> None:
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse provider ISO timestamps into naive UTC"""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_ssl(data: Optional[Dict[str, Any]]) -> SSLInfo:
    data = data or {}
    return SSLInfo(
        status=data.get("status"),
        expires_at=_parse_datetime(data.get("expires_on")),
        validation_method=data.get("method") or data.get("validation_method"),
    )


def _parse_hostname(result: Dict[str, Any], zone_ref: Optional[str] = None) -> HostnameInfo:
    errors = result.get("verification_errors") or []
    return HostnameInfo(
        ref=result["id"],
        zone_ref=zone_ref,
        status=result.get("status", "pending"),
        ssl=_parse_ssl(result.get("ssl")),
        verification_errors=[str(e) for e in errors],
        raw=result,
    )


def error_for_response(status_code: int, payload: Any) -> ProviderError:
    """Map an HTTP status and API envelope to a typed provider error"""
    errors = []
    if isinstance(payload, dict):
        errors = payload.get("errors") or []
    message = "Unknown error"
    if errors and isinstance(errors[0], dict):
        message = errors[0].get("message") or message

    if status_code in (401, 403):
        cls = ProviderUnauthenticated
    elif status_code == 404:
        cls = ProviderNotFound
    elif status_code == 429:
        cls = ProviderRateLimited
    elif status_code >= 500:
        cls = ProviderUnavailable
    elif status_code >= 400:
        cls = ProviderRejected
    elif not isinstance(payload, dict):
        cls = ProviderUnknownError
        message = "Unparseable provider response"
    else:
        # 2xx with success: false
        cls = ProviderRejected

    return cls(f"Provider error: {message}", status_code=status_code, errors=errors)


class CloudflareProviderClient(ProviderClient):
    """Cloudflare API v4 (custom hostnames, DNS records, zone analytics)"""

    def __init__(self, config: ProviderConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            headers={
                "Authorization": f"Bearer {config.api_token}",
                "Content-Type": "application/json",
            },
            timeout=config.timeout,
            transport=transport,
        )

    def _zone(self) -> str:
        if not self.config.zone_id:
            raise ProviderRejected("Provider zone is not configured")
        return self.config.zone_id

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(f"Provider request timed out: {method} {path}") from e
        except httpx.TransportError as e:
            raise ProviderUnavailable(f"Provider unreachable: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400 or not isinstance(payload, dict) or not payload.get("success"):
            error = error_for_response(response.status_code, payload)
            logger.warning(f"{method} {path} failed ({response.status_code}): {error.message}")
            raise error

        return payload.get("result")

    async def register_hostname(self, hostname: str) -> HostnameInfo:
        result = await self._request(
            "POST",
            f"/zones/{self._zone()}/custom_hostnames",
            json={
                "hostname": hostname,
                "ssl": {
                    "method": "http",
                    "type": "dv",
                    "settings": {
                        "http2": "on",
                        "min_tls_version": "1.2",
                        "tls_1_3": "on",
                    },
                },
            },
        )
        return _parse_hostname(result, self._zone())

    async def get_hostname_status(self, hostname_ref: str) -> HostnameInfo:
        result = await self._request("GET", f"/zones/{self._zone()}/custom_hostnames/{hostname_ref}")
        return _parse_hostname(result, self._zone())

    async def force_ssl_issuance(self, hostname_ref: str) -> SSLInfo:
        result = await self._request(
            "PATCH",
            f"/zones/{self._zone()}/custom_hostnames/{hostname_ref}",
            json={"ssl": {"method": "http", "type": "dv"}},
        )
        return _parse_ssl((result or {}).get("ssl"))

    async def upsert_dns_record(self, zone_ref: str, record: Any, record_ref: Optional[str] = None) -> str:
        body = {
            "type": record.record_type,
            "name": record.name,
            "content": record.value,
            "ttl": record.ttl or DEFAULT_TTL,
            "priority": record.priority,
            "proxied": bool(getattr(record, "proxied", False)),
        }
        if record_ref:
            result = await self._request("PUT", f"/zones/{zone_ref}/dns_records/{record_ref}", json=body)
        else:
            result = await self._request("POST", f"/zones/{zone_ref}/dns_records", json=body)
        return result["id"]

    async def fetch_analytics(self, zone_ref: str, day: date) -> AnalyticsSnapshot:
        since = datetime.combine(day, time.min)
        until = since + timedelta(days=1)
        result = await self._request(
            "GET",
            f"/zones/{zone_ref}/analytics/dashboard",
            params={
                "since": since.isoformat() + "Z",
                "until": until.isoformat() + "Z",
                "continuous": "false",
            },
        )
        totals = (result or {}).get("totals", {})
        requests = totals.get("requests", {})
        total_requests = int(requests.get("all") or 0)
        cached = int(requests.get("cached") or 0)
        errors = sum(
            int(count)
            for code, count in (requests.get("http_status") or {}).items()
            if str(code).isdigit() and int(code) >= 400
        )
        return AnalyticsSnapshot(
            requests_count=total_requests,
            unique_visitors=int(totals.get("uniques", {}).get("all") or 0),
            bandwidth_bytes=int(totals.get("bandwidth", {}).get("all") or 0),
            cache_hit_rate=round(cached / total_requests * 100, 2) if total_requests else 0.0,
            error_rate=round(errors / total_requests * 100, 2) if total_requests else 0.0,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def get_provider_client(config: Optional[ProviderConfig] = None) -> ProviderClient:
    """Build the provider client from settings"""
    return CloudflareProviderClient(config or ProviderConfig.from_settings())
