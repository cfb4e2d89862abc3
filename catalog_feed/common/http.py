"""HTTP access to the catalog search API.

Transient failures (connection errors, 429 and 5xx answers) are retried
with jittered backoff. Client errors are raised at once.
"""

import logging
import os
import time
from typing import Any

import requests
from requests import RequestException, Response
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

log = logging.getLogger(__name__)
SESSION = requests.Session()
SESSION.trust_env = False

MAX_ATTEMPTS = int(os.environ.get("CATALOG_API_RETRIES", "5"))


class TransientHTTPError(RequestException):
    """A response worth retrying."""


@retry(
    reraise=True,
    stop=stop_after_attempt(MAX_ATTEMPTS),
    wait=wait_random_exponential(multiplier=1, max=30),
    retry=retry_if_exception_type((TransientHTTPError, requests.ConnectionError, requests.Timeout)),
    before_sleep=before_sleep_log(log, logging.WARNING),
)
def request(method: str, url: str, **kwargs: Any) -> Response:
    start = time.monotonic()
    resp = SESSION.request(method, url, **kwargs)
    if resp.status_code == 429 or resp.status_code >= 500:
        raise TransientHTTPError(f"{resp.status_code} for {url}")
    resp.raise_for_status()
    log.info(
        "http %s %s status=%s duration=%.2f",
        method,
        url,
        resp.status_code,
        time.monotonic() - start,
    )
    return resp


def get_json(url: str, **kwargs: Any) -> Any:
    return request("GET", url, **kwargs).json()
