"""Minimal HTTP/1.x request reader for socket-activated connections."""

from typing import BinaryIO, Dict, Optional, Union
from .models import IncomingRequest
from .outcome import Rejection, malformed

# Methods that may omit content-length entirely
BODYLESS_METHODS = ("GET", "HEAD")
READ_CHUNK = 65536


def _decode(line: bytes) -> str:
    return line.decode("utf-8", errors="replace").rstrip("\r\n")


def read_request(stream: BinaryIO) -> Union[IncomingRequest, Rejection]:
    """Read a request line, headers and exactly content-length body bytes.

    Lines containing a colon are headers, split on the first colon. The
    first line without a colon is the request line. Header names are
    lower-cased and later duplicates overwrite earlier ones. An empty
    line ends the header block.
    """
    request_line: Optional[str] = None
    headers: Dict[str, str] = {}

    while True:
        raw = stream.readline()
        if not raw:
            # Connection closed before the header block ended
            return malformed()
        line = _decode(raw)
        if line == "":
            break
        if ":" in line:
            name, value = line.split(":", 1)
            headers[name.strip().lower()] = value.strip()
        elif request_line is None:
            request_line = line

    if request_line is None:
        return malformed()
    fields = request_line.split()
    if len(fields) != 3:
        return malformed()
    method, path, protocol_version = fields

    length = headers.get("content-length")
    if length is None and method in BODYLESS_METHODS:
        length = "0"
    if length is None or not length.isdigit():
        return malformed()

    body = _read_exactly(stream, int(length))
    if body is None:
        return malformed()

    return IncomingRequest(
        method=method,
        path=path,
        protocol_version=protocol_version,
        headers=headers,
        body=body,
    )


def _read_exactly(stream: BinaryIO, length: int) -> Optional[bytes]:
    """Read length bytes, or None if the stream ends first."""
    chunks = []
    remaining = length
    while remaining > 0:
        chunk = stream.read(min(remaining, READ_CHUNK))
        if not chunk:
            return None
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)
