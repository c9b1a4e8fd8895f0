"""Target resolution against the configured target tables."""

import logging
from typing import Union
from .config import Configuration
from .models import JobRecord, ResolvedJob
from .outcome import FailureKind, Rejection, ambiguous, missing_field

logger = logging.getLogger(__name__)


def resolve(record: JobRecord, config: Configuration) -> Union[ResolvedJob, Rejection]:
    """Bind a job record to exactly one configured target.

    A configured key is a candidate when it starts with the requested
    target. A non-empty task narrows candidates to keys starting with
    "{target}/{task}". Anything other than one remaining candidate is a
    rejection; overlapping keys are a configuration error, not something
    to pick a winner from.
    """
    if not record.project:
        return missing_field("project")
    if not record.target:
        return missing_field("target")

    if record.project not in config.projects:
        return Rejection(
            kind=FailureKind.UNKNOWN_PROJECT,
            message=f"Unknown project {record.project}",
        )
    targets = config.targets_for(record.project)

    candidates = [key for key in targets if key.startswith(record.target)]
    if not candidates:
        return Rejection(
            kind=FailureKind.UNKNOWN_TARGET,
            message=f"Unknown target {record.target}",
        )

    if record.task:
        prefix = f"{record.target}/{record.task}"
        candidates = [key for key in candidates if key.startswith(prefix)]
        if not candidates:
            return Rejection(
                kind=FailureKind.UNKNOWN_TASK,
                message=f"Unknown task {record.task} for target {record.target}",
            )

    if len(candidates) > 1:
        return ambiguous(sorted(candidates))

    key = candidates[0]
    logger.debug("Resolved %s %s to %s", record.project, record.target, key)
    return ResolvedJob(record=record, build_command=targets[key], matched_target=key)
