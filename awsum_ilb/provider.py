"""boto3 client bundle and the single seam through which provider calls are made.

Every AWS call goes through :func:`invoke` or :func:`paginate`. botocore errors
whose code is a recognized idempotent outcome (a duplicate on create, a
not-found on lookup) are returned as a tagged :class:`CallResult` when the
caller tolerates them; everything else is raised as ``ProviderAPIError``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import AWSConfig
from .exceptions import ConfigError, ProviderAPIError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderClients:
    """Explicit bundle of the boto3 clients used by one reconciliation."""

    ec2: Any
    elbv2: Any
    acm: Any
    route53: Any


def build_clients(aws_config: AWSConfig) -> ProviderClients:
    """Create one boto3 session and the four service clients from it."""
    session_kwargs: dict[str, Any] = {}
    if aws_config.region:
        session_kwargs["region_name"] = aws_config.region
    if aws_config.credential_profile:
        session_kwargs["profile_name"] = aws_config.credential_profile

    try:
        session = boto3.Session(**session_kwargs)
        return ProviderClients(
            ec2=session.client("ec2"),
            elbv2=session.client("elbv2"),
            acm=session.client("acm"),
            route53=session.client("route53"),
        )
    except BotoCoreError as exc:  # e.g. ProfileNotFound, NoRegionError
        raise ConfigError(f"Cannot create AWS clients: {exc}") from exc


# ── Error classification ────────────────────────────────────────────


class ProviderOutcome(enum.Enum):
    """botocore error codes that reconciliation treats as expected outcomes."""

    DUPLICATE_RULE = "InvalidPermission.Duplicate"
    DUPLICATE_SECURITY_GROUP = "InvalidGroup.Duplicate"
    DUPLICATE_TARGET_GROUP = "DuplicateTargetGroupName"
    DUPLICATE_LOAD_BALANCER = "DuplicateLoadBalancerName"
    TARGET_GROUP_NOT_FOUND = "TargetGroupNotFound"
    LOAD_BALANCER_NOT_FOUND = "LoadBalancerNotFound"

    @property
    def is_conflict(self) -> bool:
        return self in _CONFLICTS

    @property
    def is_not_found(self) -> bool:
        return self in _NOT_FOUND


_CONFLICTS = frozenset({
    ProviderOutcome.DUPLICATE_RULE,
    ProviderOutcome.DUPLICATE_SECURITY_GROUP,
    ProviderOutcome.DUPLICATE_TARGET_GROUP,
    ProviderOutcome.DUPLICATE_LOAD_BALANCER,
})

_NOT_FOUND = frozenset({
    ProviderOutcome.TARGET_GROUP_NOT_FOUND,
    ProviderOutcome.LOAD_BALANCER_NOT_FOUND,
})

_BY_CODE = {outcome.value: outcome for outcome in ProviderOutcome}


def error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def classify_error(exc: BaseException) -> ProviderOutcome | None:
    """Map a botocore ClientError to a recognized outcome, or None."""
    if not isinstance(exc, ClientError):
        return None
    return _BY_CODE.get(error_code(exc))


@dataclass(frozen=True)
class CallResult:
    """Either a successful response or a tolerated outcome."""

    response: dict[str, Any]
    outcome: ProviderOutcome | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is None


def _operation_name(operation: Callable[..., Any]) -> str:
    return getattr(operation, "__name__", None) or "call"


def _wrap(exc: Exception, operation: str) -> ProviderAPIError:
    if isinstance(exc, ClientError):
        code = error_code(exc)
        return ProviderAPIError(f"{operation} failed: {exc}", code=code or None, operation=operation)
    return ProviderAPIError(f"{operation} failed: {exc}", operation=operation)


def invoke(
    operation: Callable[..., dict[str, Any]],
    *,
    tolerate: Iterable[ProviderOutcome] = (),
    **kwargs: Any,
) -> CallResult:
    """Call a boto3 client method, classifying its error into a tagged result."""
    name = _operation_name(operation)
    tolerated = frozenset(tolerate)
    logger.debug("AWS %s %s", name, sorted(kwargs))

    try:
        return CallResult(response=operation(**kwargs))
    except ClientError as exc:
        outcome = classify_error(exc)
        if outcome is not None and outcome in tolerated:
            logger.debug("AWS %s returned tolerated outcome %s", name, outcome.value)
            return CallResult(response={}, outcome=outcome)
        raise _wrap(exc, name) from exc
    except BotoCoreError as exc:
        raise _wrap(exc, name) from exc


def paginate(
    client: Any,
    operation: str,
    result_key: str,
    *,
    tolerate: Iterable[ProviderOutcome] = (),
    **kwargs: Any,
) -> list[Any]:
    """Collect ``result_key`` items across all pages of a paginated operation.

    A tolerated outcome (e.g. a not-found on a lookup by name) yields an empty list.
    """
    tolerated = frozenset(tolerate)
    items: list[Any] = []
    logger.debug("AWS %s (paginated) %s", operation, sorted(kwargs))

    try:
        paginator = client.get_paginator(operation)
        for page in paginator.paginate(**kwargs):
            items.extend(page.get(result_key, []))
    except ClientError as exc:
        outcome = classify_error(exc)
        if outcome is not None and outcome in tolerated:
            logger.debug("AWS %s returned tolerated outcome %s", operation, outcome.value)
            return []
        raise _wrap(exc, operation) from exc
    except BotoCoreError as exc:
        raise _wrap(exc, operation) from exc

    return items
