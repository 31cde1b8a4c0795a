# Checksum helpers for downloaded files
# Input: local file path
# Output: hex MD5 digest

import hashlib

from mediaservice.config import MD5_BUFFER_SIZE


def md5_file(path, buffer_size=MD5_BUFFER_SIZE):
    md5 = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(buffer_size), b""):
            md5.update(chunk)
    return md5.hexdigest()

