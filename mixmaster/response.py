"""Minimal HTTP response writer."""

from http import HTTPStatus
from typing import BinaryIO


def write_response(stream: BinaryIO, status: int, body: str = "") -> None:
    """Write one status line, minimal headers and an optional text body."""
    reason = HTTPStatus(status).phrase
    lines = [f"HTTP/1.1 {status} {reason}", "Connection: close"]
    payload = body.encode("utf-8")
    if payload:
        lines.append("Content-Type: text/plain; charset=utf-8")
        lines.append(f"Content-Length: {len(payload)}")
    elif status != HTTPStatus.NO_CONTENT:
        lines.append("Content-Length: 0")
    head = "\r\n".join(lines) + "\r\n\r\n"
    stream.write(head.encode("ascii") + payload)
    stream.flush()
