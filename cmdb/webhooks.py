import logging
from typing import Any, Dict, Optional

import requests

from cmdb.config import webhook_timeout

logger = logging.getLogger(__name__)


class WebhookError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


def post_json(url: str, payload: Optional[Dict[str, Any]] = None, timeout: Optional[int] = None) -> requests.Response:
    """POST once to a workflow webhook. Any non-2xx answer is an error."""
    logger.info("POST %s", url)
    try:
        resp = requests.post(
            url,
            headers={"Content-Type": "application/json; charset=utf-8"},
            json=payload,
            timeout=timeout or webhook_timeout(),
        )
    except requests.RequestException as e:
        raise WebhookError(f"Could not reach webhook: {e}") from e

    if not resp.ok:
        raise WebhookError(
            f"Webhook call failed: {resp.reason} (status {resp.status_code})",
            status_code=resp.status_code,
        )
    return resp
