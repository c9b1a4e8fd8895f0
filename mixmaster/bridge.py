"""Per-connection pipeline: request to job file to response."""

import json
import logging
from pathlib import Path
from typing import BinaryIO, Union
from . import __version__
from .config import Configuration, ConfigurationMissing, load_config
from .jobfile import emit
from .outcome import Accepted, FailureKind, Rejection, malformed
from .payloads import Normalizer, Payload, select_route
from .request import read_request
from .resolver import resolve
from .response import write_response

logger = logging.getLogger(__name__)

Outcome = Union[Accepted, Rejection]


def ingest(payload: Payload, normalizer: Normalizer, config: Configuration) -> Outcome:
    """Normalize, resolve and emit one decoded payload."""
    record = normalizer(payload, config.settings)
    if isinstance(record, Rejection):
        return record

    job = resolve(record, config)
    if isinstance(job, Rejection):
        return job

    path = emit(job, config.settings)
    if isinstance(path, Rejection):
        return path

    logger.info("Queued %s %s (%s) as %s",
                job.record.project, job.matched_target, job.record.commit or "no commit", path.name)
    return Accepted(job_file=str(path))


def process(stream: BinaryIO, config: Configuration) -> Outcome:
    """Run the pipeline over one inbound request stream."""
    request = read_request(stream)
    if isinstance(request, Rejection):
        return request

    route = select_route(request.method, request.path)
    if isinstance(route, Rejection):
        return route

    if route.normalizer is None:
        return Accepted(status=200, body=f"{__version__}\n")

    payload = json.loads(request.body)
    if not isinstance(payload, dict):
        return malformed()

    return ingest(payload, route.normalizer, config)


def respond(stream: BinaryIO, outcome: Outcome) -> None:
    """Map an outcome to its response."""
    if isinstance(outcome, Rejection):
        logger.warning("Rejected request: %s %s", outcome.kind.value, outcome.message)
        write_response(stream, outcome.status, outcome.public_message)
    else:
        write_response(stream, outcome.status, outcome.body)


def handle_connection(config_path: Path, instream: BinaryIO, outstream: BinaryIO) -> Outcome:
    """Serve one connection; the caller always gets exactly one response."""
    outcome: Outcome
    try:
        config = load_config(config_path)
        outcome = process(instream, config)
    except ConfigurationMissing as e:
        logger.error("%s", e)
        outcome = Rejection(kind=FailureKind.CONFIGURATION_MISSING, message=str(e))
    except Exception:
        logger.exception("Unexpected failure while processing request")
        outcome = malformed()

    respond(outstream, outcome)
    return outcome
