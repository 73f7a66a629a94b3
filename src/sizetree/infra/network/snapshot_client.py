from __future__ import annotations

import logging

import requests

from sizetree.domain.errors import StreamError
from sizetree.infra.network.common import DEFAULT_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


def fetch_text(url: str, timeout: int = DEFAULT_TIMEOUT) -> str:
    """Download a text document (size report, build log or snapshot)."""
    headers = {"User-Agent": USER_AGENT}
    logger.debug(f"Fetching remote document: {url}")

    try:
        response = requests.get(url, headers=headers, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.Timeout as e:
        logger.warning(f"Network: Request to {url} timed out after {timeout}s.")
        raise StreamError(f"Timed out fetching {url}") from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Network: Communication error fetching {url}: {e}")
        raise StreamError(f"Couldn't fetch {url}: {e}") from e

    size_kb = len(response.content) / 1024
    logger.info(f"Network: Downloaded {url} ({size_kb:.1f} KB).")
    return response.text
