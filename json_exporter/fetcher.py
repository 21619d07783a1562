"""Fetching and decoding target JSON documents with httpx."""
from typing import Any
import json
import logging

import httpx

from json_exporter.config import HTTPClientConfig

logger = logging.getLogger(__name__)


class ProbeError(RuntimeError):
    """Raised when a target document cannot be retrieved."""


class FetchError(ProbeError):
    """The target could not be reached or its body could not be read."""


class DecodeError(ProbeError):
    """The target answered with a body that is not valid JSON."""


def _reject_constant(token: str):
    # NaN, Infinity and -Infinity are not JSON
    raise ValueError(f"Unexpected token {token}")


def create_client(config: HTTPClientConfig) -> httpx.AsyncClient:
    """Build the HTTP client shared by all probes."""
    if config.insecure_skip_verify:
        logger.info("TLS certificate verification is disabled for probe targets")

    return httpx.AsyncClient(
        verify=not config.insecure_skip_verify,
        timeout=config.timeout_s,
        limits=httpx.Limits(max_connections=config.max_connections),
        follow_redirects=config.follow_redirects,
    )


async def fetch_json(client: httpx.AsyncClient, target: str) -> Any:
    """
    GET ``target`` and decode its body as JSON.

    The response status is not inspected: any body that decodes is probed.

    Raises:
        FetchError: On transport errors or an invalid URL
        DecodeError: When the body is not JSON
    """
    try:
        response = await client.get(target)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(f"Failed to fetch {target}: {e}") from e

    logger.debug(f"Fetched {target}: HTTP {response.status_code}, {len(response.content)} bytes")

    try:
        return json.loads(response.content, parse_constant=_reject_constant)
    except ValueError as e:
        raise DecodeError(f"Invalid JSON from {target}: {e}") from e
