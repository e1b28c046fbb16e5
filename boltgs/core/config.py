"""
Configuration for the HTTP functions.

The Bolt endpoint is configured through ``BOLT_URL``. Deployments that share
one URL across regions put a ``{region}`` placeholder in it; the region then
comes from ``BOLT_REGION`` or, failing that, from the zone reported by the
instance metadata server.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Mapping

import httpx
from pydantic import BaseModel, ConfigDict

from boltgs.__metadata__ import (
    BOLT_REGION_ENV,
    BOLT_URL_ENV,
    METADATA_HEADERS,
    METADATA_ZONE_URL,
)
from boltgs.core.errors import ConfigError


logger = logging.getLogger(__name__)

REGION_PLACEHOLDER = "{region}"


class BoltConfig(BaseModel):
    """Process-wide settings, built once per invocation and passed explicitly."""

    model_config = ConfigDict(frozen=True)

    bolt_url: str | None = None
    region: str | None = None
    metadata_timeout_seconds: float = 5.0
    metadata_max_attempts: int = 3
    metadata_retry_delay_seconds: float = 0.5

    def bolt_endpoint(self) -> str:
        """
        Resolve the Bolt endpoint URL.

        Returns:
            BOLT_URL with any ``{region}`` placeholder substituted

        Raises:
            ConfigError: If BOLT_URL is unset or the region cannot be discovered
        """
        if not self.bolt_url:
            raise ConfigError(f"{BOLT_URL_ENV} is not configured")

        if REGION_PLACEHOLDER not in self.bolt_url:
            return self.bolt_url

        region = self.region or discover_region(
            timeout_seconds=self.metadata_timeout_seconds,
            max_attempts=self.metadata_max_attempts,
            retry_delay_seconds=self.metadata_retry_delay_seconds,
        )
        endpoint = self.bolt_url.replace(REGION_PLACEHOLDER, region)
        logger.info("Resolved Bolt endpoint %s (region=%s)", endpoint, region)
        return endpoint


def load_config(environ: Mapping[str, str] | None = None) -> BoltConfig:
    """
    Build a BoltConfig from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        BoltConfig; unset variables are left as None
    """
    env = os.environ if environ is None else environ
    return BoltConfig(
        bolt_url=env.get(BOLT_URL_ENV) or None,
        region=env.get(BOLT_REGION_ENV) or None,
    )


def region_from_zone(zone: str) -> str:
    """
    Derive a region from a zone identifier.

    Examples:
        >>> region_from_zone("projects/123456/zones/us-central1-a")
        'us-central1'
        >>> region_from_zone("europe-west4-b")
        'europe-west4'

    Raises:
        ConfigError: If the zone has no '-<suffix>' to strip
    """
    zone_name = zone.strip().rsplit("/", 1)[-1]
    region, sep, suffix = zone_name.rpartition("-")
    if not sep or not region or not suffix:
        raise ConfigError(f"Cannot derive region from zone: {zone!r}")
    return region


def discover_region(
    *,
    timeout_seconds: float = 5.0,
    max_attempts: int = 3,
    retry_delay_seconds: float = 0.5,
) -> str:
    """
    Ask the instance metadata server which zone we run in and map it to a region.

    Raises:
        ConfigError: If the metadata server cannot be reached after all attempts
    """
    logger.info("Discovering region from %s", METADATA_ZONE_URL)

    last_exc: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            with httpx.Client(timeout=timeout_seconds) as client:
                response = client.get(METADATA_ZONE_URL, headers=METADATA_HEADERS)
                response.raise_for_status()
                return region_from_zone(response.text)
        except httpx.HTTPError as exc:
            last_exc = exc
            logger.warning(
                "Metadata lookup attempt %d/%d failed: %s",
                attempt,
                max_attempts,
                exc,
            )
            if attempt < max_attempts:
                time.sleep(retry_delay_seconds)

    raise ConfigError(
        f"Unable to discover region from metadata server: {last_exc}",
        cause=last_exc,
    )
