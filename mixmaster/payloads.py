"""Payload normalization: webhook bodies to canonical job records."""

from functools import partial
from typing import Any, Callable, Dict, NamedTuple, Optional, Sequence, Tuple, Union
from .models import JobRecord, Settings
from .outcome import FailureKind, Rejection, missing_field

REF_PREFIX = "refs/heads/"

Payload = Dict[str, Any]
Normalizer = Callable[[Payload, Settings], Union[JobRecord, Rejection]]


class WebhookFlavor(NamedTuple):
    """Field names that differ between push-webhook deployments."""
    compare_field: str
    commit_url_field: str = "url"


GITEA = WebhookFlavor(compare_field="compare_url")
GITHUB = WebhookFlavor(compare_field="compare")


def _lookup(payload: Payload, dotted: str) -> Any:
    value: Any = payload
    for part in dotted.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _text(payload: Payload, dotted: str) -> str:
    value = _lookup(payload, dotted)
    if value is None:
        return ""
    return str(value)


def first_missing(payload: Payload, fields: Sequence[str]) -> Optional[str]:
    """Return the first field, in the given order, that is absent or empty."""
    for field in fields:
        if _text(payload, field) == "":
            return field
    return None


def strip_ref(ref: str) -> str:
    """Strip the first refs/heads/ occurrence from a ref name."""
    return ref.replace(REF_PREFIX, "", 1)


def normalize_webhook(payload: Payload, settings: Settings,
                      flavor: WebhookFlavor = GITEA) -> Union[JobRecord, Rejection]:
    """Normalize a push-webhook payload (repository, ref, after, commits)."""
    missing = first_missing(payload, ("repository.ssh_url", "repository.full_name", "ref"))
    if missing:
        return missing_field(missing)

    view_url = _text(payload, flavor.compare_field)
    messages: Dict[str, str] = {}
    commits = payload.get("commits")
    if isinstance(commits, list):
        for commit in commits:
            if not isinstance(commit, dict):
                continue
            messages[_text(commit, "id")] = _text(commit, "message")
        if not view_url and commits and isinstance(commits[0], dict):
            view_url = _text(commits[0], flavor.commit_url_field)

    return JobRecord(
        scm="git",
        repository_url=_text(payload, "repository.ssh_url"),
        project=_text(payload, "repository.full_name"),
        target=strip_ref(_text(payload, "ref")),
        commit=_text(payload, "after"),
        view_url=view_url,
        notifications=settings.notifications,
        commit_messages=messages,
    )


def normalize_lightweight(payload: Payload, settings: Settings) -> Union[JobRecord, Rejection]:
    """Normalize the flat JSON body accepted on the root endpoint."""
    missing = first_missing(payload, ("scm", "repositoryUrl", "project", "target"))
    if missing:
        return missing_field(missing)

    commit = _text(payload, "commit")
    messages: Dict[str, str] = {}
    if "message" in payload:
        messages[commit] = _text(payload, "message")

    return JobRecord(
        scm=_text(payload, "scm"),
        repository_url=_text(payload, "repositoryUrl"),
        project=_text(payload, "project"),
        target=strip_ref(_text(payload, "target")),
        task=_text(payload, "task"),
        commit=commit,
        view_url=_text(payload, "viewUrl"),
        notifications=_text(payload, "notifications") or settings.notifications,
        commit_messages=messages,
    )


def normalize_adhoc(payload: Payload, settings: Settings) -> Union[JobRecord, Rejection]:
    """Normalize the command-only adhoc body; branch is already bare."""
    missing = first_missing(payload, ("scm", "repositoryUrl", "repositoryName", "commit", "branch"))
    if missing:
        return missing_field(missing)

    return JobRecord(
        scm=_text(payload, "scm"),
        repository_url=_text(payload, "repositoryUrl"),
        project=_text(payload, "repositoryName"),
        target=_text(payload, "branch"),
        commit=_text(payload, "commit"),
        view_url=_text(payload, "viewUrl"),
        notifications=settings.notifications,
    )


class Route(NamedTuple):
    """An endpoint: accepted methods and the normalizer for its body.

    Routes without a normalizer answer with the version string.
    """
    methods: Tuple[str, ...]
    normalizer: Optional[Normalizer] = None


JOB_METHODS = ("POST", "PUT")

ROUTES: Dict[str, Route] = {
    "/": Route(JOB_METHODS, normalize_lightweight),
    "/gitea": Route(JOB_METHODS, partial(normalize_webhook, flavor=GITEA)),
    "/github": Route(JOB_METHODS, partial(normalize_webhook, flavor=GITHUB)),
    "/adhoc": Route(JOB_METHODS, normalize_adhoc),
    "/version": Route(("GET",)),
}


def select_route(method: str, path: str) -> Union[Route, Rejection]:
    """Look up the route for a request by exact path match."""
    route = ROUTES.get(path)
    if route is None:
        return Rejection(kind=FailureKind.NOT_FOUND, message=f"No such endpoint {path}")
    if method.upper() not in route.methods:
        return Rejection(kind=FailureKind.METHOD_NOT_ALLOWED, message=f"{method} not allowed on {path}")
    return route
