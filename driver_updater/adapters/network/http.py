"""
HTTP adapter — page fetches and file downloads over ``urllib``.

Two operations:
    get       Read a (small) text page into ``Receipt.output``.
    download  Stream a response body to ``dest`` on disk.
"""

from __future__ import annotations

import logging
import shutil
import urllib.error
import urllib.request
from pathlib import Path

from driver_updater.adapters.base import Adapter, ExecutionContext
from driver_updater.core.models.action import Receipt

logger = logging.getLogger(__name__)

USER_AGENT = "ec2-driver-updater/1.0"

_OPERATIONS = {"get", "download"}


class HttpAdapter(Adapter):
    """Fetch URLs with an explicit timeout.

    Action params:
        operation (str): 'get' or 'download'.
        url (str): Target URL.
        timeout (float): Socket timeout in seconds (default: 30).
        method (str): HTTP method for 'get' (default: GET).
        headers (dict[str, str]): Extra request headers.
        dest (str): Output file for 'download' (relative to work_dir).
    """

    @property
    def name(self) -> str:
        return "http"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "get")
        if operation not in _OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_OPERATIONS))}"

        url = context.params.get("url", "")
        if not url:
            return False, "Missing required param: 'url'"
        if not url.startswith(("http://", "https://")):
            return False, f"Unsupported URL scheme: {url}"

        if operation == "download" and not context.params.get("dest"):
            return False, "Missing required param: 'dest' for download"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params.get("operation", "get")
        url = context.params["url"]
        timeout = context.params.get("timeout", 30)

        headers = {"User-Agent": USER_AGENT}
        headers.update(context.params.get("headers") or {})
        request = urllib.request.Request(
            url,
            headers=headers,
            method=context.params.get("method", "GET"),
        )

        try:
            if operation == "download":
                return self._download(context, request, timeout)
            return self._get(context, request, timeout)
        except urllib.error.HTTPError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"HTTP {e.code} from {url}",
                metadata={"url": url, "status": e.code},
            )
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            reason = getattr(e, "reason", e)
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Request to {url} failed: {reason}",
                metadata={"url": url},
            )

    def _get(self, context: ExecutionContext, request: urllib.request.Request, timeout: float) -> Receipt:
        with urllib.request.urlopen(request, timeout=timeout) as resp:
            body = resp.read()
            charset = resp.headers.get_content_charset() or "utf-8"

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=body.decode(charset, errors="replace"),
            metadata={"url": request.full_url, "bytes": len(body)},
        )

    def _download(self, context: ExecutionContext, request: urllib.request.Request, timeout: float) -> Receipt:
        dest = Path(context.params["dest"])
        if not dest.is_absolute():
            dest = Path(context.working_dir) / dest
        dest.parent.mkdir(parents=True, exist_ok=True)

        logger.info("Downloading %s → %s", request.full_url, dest)
        try:
            with urllib.request.urlopen(request, timeout=timeout) as resp, open(dest, "wb") as out:
                shutil.copyfileobj(resp, out)
        except BaseException:
            # Never leave a truncated file behind for the extract step
            dest.unlink(missing_ok=True)
            raise

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=str(dest),
            metadata={"url": request.full_url, "bytes": dest.stat().st_size},
        )
