"""HTTP helpers and the exploit file downloader.

All network I/O for pages and artifacts goes through ``http_get`` so every
request carries a bounded timeout and the same retry policy.
"""

import logging
import re
from pathlib import Path

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import HttpConfig
from .errors import DownloadError
from .sniff import sniff_file

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = (10, 60)  # (connect, read)
TEMP_SUFFIX = ".temp"

# Stripped from titles before character substitution.
TITLE_NOISE = ("Remote Code Execution", "(RCE)")

_TRANSIENT_ERRORS = (requests.ConnectionError, requests.Timeout)


def requests_session(http: HttpConfig | None = None) -> requests.Session:
    """Create a requests session with the configured User-Agent.

    Args:
        http: HTTP settings (defaults apply when None).

    Returns:
        Configured ``requests.Session``.
    """
    http = http or HttpConfig()
    s = requests.Session()
    s.headers.update(
        {
            "User-Agent": http.user_agent,
            "Accept": "*/*",
        }
    )
    return s


def http_get(
    session: requests.Session,
    url: str,
    *,
    timeout: tuple[float, float] = DEFAULT_HTTP_TIMEOUT,
    attempts: int = 1,
    stream: bool = False,
) -> requests.Response:
    """GET a URL, raising on HTTP errors.

    Connection errors and timeouts are retried with exponential backoff
    up to ``attempts`` total tries; HTTP error statuses are not.

    Args:
        session: Requests session.
        url: URL to fetch.
        timeout: ``(connect, read)`` timeout in seconds.
        attempts: Total attempts (``1`` means no retry).
        stream: Defer downloading the body.

    Returns:
        The response, after ``raise_for_status()``.  On an error status the
        response is closed before the ``HTTPError`` propagates.
    """
    for attempt in Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        reraise=True,
    ):
        with attempt:
            r = session.get(url, timeout=timeout, stream=stream)
            try:
                r.raise_for_status()
            except requests.HTTPError:
                r.close()
                raise
    return r


def clean_title(title: str) -> str:
    """Turn an exploit title into a safe base filename.

    ``"Foo/Bar (RCE) Remote Code Execution!!"`` becomes ``"Foo_Bar"``.

    Args:
        title: Feed item title.

    Returns:
        Name made of ``[A-Za-z0-9_]`` with no leading or trailing
        underscore; ``"exploit"`` if nothing usable remains.
    """
    for noise in TITLE_NOISE:
        title = title.replace(noise, "")
    cleaned = re.sub(r"[^A-Za-z0-9]+", "_", title).strip("_")
    return cleaned or "exploit"


def download_file(
    session: requests.Session,
    url: str,
    dest_dir: Path,
    base_name: str,
    *,
    timeout: tuple[float, float] = DEFAULT_HTTP_TIMEOUT,
    attempts: int = 1,
) -> Path:
    """Download ``url`` into ``dest_dir`` and name it by sniffed content.

    The body is streamed to ``<base_name>.temp``, then renamed to
    ``<base_name><ext>``.  An existing file with that name is replaced.

    Args:
        session: Requests session.
        url: Artifact URL.
        dest_dir: Target directory (created if missing).
        base_name: Sanitized base filename, see ``clean_title``.
        timeout: ``(connect, read)`` timeout in seconds.
        attempts: Total attempts for the request.

    Returns:
        Path of the stored file.

    Raises:
        DownloadError: If the request, the write, or the rename fails.
            A partially written temp file is removed.
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    tmp = dest_dir / f"{base_name}{TEMP_SUFFIX}"

    try:
        with http_get(session, url, timeout=timeout, attempts=attempts, stream=True) as r:
            with tmp.open("wb") as f:
                for chunk in r.iter_content(chunk_size=64 * 1024):
                    if chunk:
                        f.write(chunk)
    except (requests.RequestException, OSError) as e:
        tmp.unlink(missing_ok=True)
        raise DownloadError(f"Error downloading {url}: {e}") from e

    ext = sniff_file(tmp)
    final = dest_dir / f"{base_name}{ext}"
    try:
        tmp.replace(final)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise DownloadError(f"Error renaming {tmp} to {final}: {e}") from e

    logger.info("Downloaded file: %s", final)
    return final
