"""Job files: one INI document per accepted request in the spool directory."""

import configparser
import io
import logging
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union
from .models import ResolvedJob, Settings
from .outcome import FailureKind, Rejection

logger = logging.getLogger(__name__)

JOB_SECTION = "_"
JOB_SUFFIX = ".ini"
MESSAGE_PREFIX = "message-"
NAME_FORMAT = "%Y%m%d-%H%M%S"

_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_UNESCAPES = {"\\": "\\", "n": "\n", "r": "\r", "t": "\t"}
_ESCAPE_RE = re.compile(r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|.)", re.DOTALL)
_KEY_RESERVED = frozenset("=:[]")


def _code(ch: str) -> str:
    if ord(ch) < 0x100:
        return "\\x%02x" % ord(ch)
    return "\\u%04x" % ord(ch)


def escape_value(text: str) -> str:
    """Escape a value so it stays on one line and survives INI whitespace stripping."""
    out = [_ESCAPES.get(ch, ch) for ch in text]
    # configparser strips surrounding whitespace from values
    for i in (0, len(text) - 1):
        if text and text[i].isspace() and text[i] not in _ESCAPES:
            out[i] = _code(text[i])
    return "".join(out)


def escape_key(text: str) -> str:
    """Escape a key so it cannot contain a delimiter or start a section."""
    out = []
    for ch in text:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch in _KEY_RESERVED or ch.isspace():
            out.append(_code(ch))
        else:
            out.append(ch)
    return "".join(out)


def unescape(text: str) -> str:
    """Reverse escape_value and escape_key."""
    def replace(match):
        seq = match.group(1)
        if seq[0] in "xu" and len(seq) > 1:
            return chr(int(seq[1:], 16))
        return _UNESCAPES.get(seq, seq)
    return _ESCAPE_RE.sub(replace, text)


def job_fields(job: ResolvedJob, settings: Settings) -> Dict[str, str]:
    """Flatten a resolved job into the key/value pairs of a job file."""
    record = job.record
    fields = {
        "scm": record.scm,
        "project": record.project,
        "repositoryUrl": record.repository_url,
        "commit": record.commit,
        "task": record.task,
        "target": job.matched_target,
        "buildCommand": job.build_command,
        "viewUrl": record.view_url,
        "mailto": settings.mailto or "",
        "mode": settings.mode.value,
        "notifications": record.notifications,
    }
    for commit_id, message in record.commit_messages.items():
        fields[MESSAGE_PREFIX + commit_id] = message
    return fields


def _new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str
    return parser


def encode_job(fields: Dict[str, str]) -> str:
    """Serialize job fields to INI text."""
    parser = _new_parser()
    parser.add_section(JOB_SECTION)
    for key, value in fields.items():
        parser.set(JOB_SECTION, escape_key(key), escape_value(value))
    buffer = io.StringIO()
    parser.write(buffer)
    return buffer.getvalue()


def decode_job(text: str) -> Dict[str, str]:
    """Parse INI text written by encode_job back into job fields."""
    parser = _new_parser()
    parser.read_string(text)
    return {
        unescape(key): unescape(value)
        for key, value in parser.items(JOB_SECTION)
    }


def read_job_file(path: Path) -> Dict[str, str]:
    """Read a job file from the spool."""
    return decode_job(Path(path).read_text(encoding="utf-8"))


def commit_messages(fields: Dict[str, str]) -> Dict[str, str]:
    """Extract the commit id -> message entries of decoded job fields."""
    return {
        key[len(MESSAGE_PREFIX):]: value
        for key, value in fields.items()
        if key.startswith(MESSAGE_PREFIX)
    }


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_job_file(job: ResolvedJob, settings: Settings,
                   now: Optional[datetime] = None) -> Path:
    """Write a job file into the spool directory and return its path.

    The file is written to a hidden temporary file first and then linked
    into place under YYYYMMDD-HHMMSS.ini. Linking fails if the name is
    taken, in which case a -N suffix is added rather than overwriting the
    earlier job.
    """
    spool = Path(settings.spool)
    stamp = (now or datetime.now()).strftime(NAME_FORMAT)
    content = encode_job(job_fields(job, settings))

    fd, tmp_name = tempfile.mkstemp(dir=spool, prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            # Job files follow the umask, not the 0600 of mkstemp
            os.fchmod(f.fileno(), 0o666 & ~_current_umask())
            f.write(content)
        attempt = 0
        while True:
            name = stamp if attempt == 0 else f"{stamp}-{attempt}"
            path = spool / f"{name}{JOB_SUFFIX}"
            try:
                os.link(tmp_name, path)
                break
            except FileExistsError:
                logger.warning("Job file %s already exists", path.name)
                attempt += 1
    finally:
        os.unlink(tmp_name)

    return path


def emit(job: ResolvedJob, settings: Settings,
         now: Optional[datetime] = None) -> Union[Path, Rejection]:
    """Write a job file, turning filesystem errors into a write failure."""
    try:
        return write_job_file(job, settings, now)
    except OSError as e:
        logger.error("Cannot write job file to %s: %s", settings.spool, e)
        return Rejection(kind=FailureKind.WRITE_FAILURE, message=str(e))


def list_job_files(spool: Path) -> List[Path]:
    """List pending job files, oldest first."""
    return sorted(Path(spool).glob(f"*{JOB_SUFFIX}"))
