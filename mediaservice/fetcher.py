"""
HTTP download module.
Streams a URL to a local file and reports the number of bytes written.
"""

import os
from pathlib import Path
from urllib.parse import urlparse

import requests

from mediaservice.config import DOWNLOAD_CHUNK_SIZE, REQUEST_TIMEOUT, USER_AGENT
from mediaservice.errors import DownloadError


def build_file_path(output_dir, url, hash):
    """
    Destination for a task: <output_dir>/<basename(url)>-<hash>.
    Distinct (url, hash) pairs never share a path.
    """
    parsed = urlparse(url)
    basename = os.path.basename(parsed.path.rstrip("/")) or parsed.netloc or "download"
    return Path(output_dir) / f"{basename}-{hash}"


def remove_stale(file_path):
    """Delete a partial file left by a previous attempt."""
    path = Path(file_path)
    if path.exists():
        path.unlink()
        return True
    return False


def download(url, file_path, timeout=REQUEST_TIMEOUT, chunk_size=DOWNLOAD_CHUNK_SIZE):
    """
    Fetch `url` into `file_path`.
    Returns bytes written; raises DownloadError on any HTTP or I/O failure.
    """
    written = 0
    try:
        with open(file_path, "wb") as output:
            with requests.get(
                url,
                stream=True,
                timeout=timeout,
                headers={"User-Agent": USER_AGENT},
                allow_redirects=True,
            ) as response:
                response.raise_for_status()
                for chunk in response.iter_content(chunk_size=chunk_size):
                    if chunk:
                        output.write(chunk)
                        written += len(chunk)
    except requests.exceptions.RequestException as e:
        raise DownloadError(f"error while downloading url {url!r}: {e}") from e
    except OSError as e:
        raise DownloadError(f"error while writing file {str(file_path)!r}: {e}") from e
    return written
