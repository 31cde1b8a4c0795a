"""
Media property extraction through the external ffprobe program.
"""

from abc import ABC, abstractmethod
import logging
import re
import shutil
import subprocess
from typing import Tuple

from mediaservice.errors import ProbeError

logger = logging.getLogger(__name__)

MEDIA_INFO_PATTERN = re.compile(r"width=(\d+)\s*height=(\d+)\s*bit_rate=(\d+)", re.MULTILINE)


def find_ffprobe() -> str:
    return shutil.which("ffprobe") or shutil.which("ffprobe.exe") or "ffprobe"


def parse_media_info(output: str) -> Tuple[str, str]:
    """
    Extract (bit_rate, resolution) from ffprobe's key=value output.
    Resolution is rendered as "<W>x<H>".
    """
    match = MEDIA_INFO_PATTERN.search(output)
    if not match:
        raise ProbeError(f"unexpected probe output: {output.strip()[:200]!r}")
    width, height, bit_rate = match.groups()
    return bit_rate, f"{width}x{height}"


class MediaProber(ABC):
    """Reads (bit_rate, resolution) from a downloaded media file."""

    @abstractmethod
    def probe(self, file_path) -> Tuple[str, str]:
        pass


class FFProbeProber(MediaProber):
    def __init__(self, binary=None, timeout=None):
        self.binary = binary or find_ffprobe()
        self.timeout = timeout

    def probe(self, file_path) -> Tuple[str, str]:
        cmd = [
            self.binary,
            "-v", "error",
            "-show_entries", "stream=width,height,bit_rate",
            "-of", "default=noprint_wrappers=1",
            str(file_path),
        ]
        logger.debug(f"Get media info from file: {file_path!s} by command: {self.binary}")
        try:
            result = subprocess.run(
                cmd,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            raise ProbeError(
                f"{self.binary} exited with code {e.returncode}: {(e.stderr or '').strip()}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"{self.binary} timed out after {self.timeout}s") from e
        except OSError as e:
            raise ProbeError(f"there was an error running {self.binary!r}: {e}") from e

        return parse_media_info(result.stdout)
