"""Custom exception hierarchy for the load-balanced service reconciler."""

from __future__ import annotations


class ReconcileError(Exception):
    """Base exception for all reconciliation errors."""


class ConfigError(ReconcileError):
    """Invalid or missing configuration."""


class ReconcileCancelled(ReconcileError):
    """Cancellation was requested between two reconciliation steps."""


# ── Preconditions (raised before any mutating call) ─────────────────


class PreconditionError(ReconcileError):
    """The instance fleet cannot be load balanced as requested."""


class NoInstancesError(PreconditionError):
    def __init__(self, pattern: str):
        super().__init__(f"No running instances match name filter '{pattern}'")
        self.pattern = pattern


class VPCMismatchError(PreconditionError):
    def __init__(self, vpc_ids: list[str]):
        super().__init__(
            f"Target instances must all be in the same VPC, found {len(vpc_ids)}: {', '.join(vpc_ids)}"
        )
        self.vpc_ids = vpc_ids


# ── Resource state ──────────────────────────────────────────────────


class ResourceNotFoundError(ReconcileError):
    """A resource that was expected to exist could not be found."""

    def __init__(self, message: str, kind: str = "", name: str = ""):
        super().__init__(message)
        self.kind = kind
        self.name = name


class HostedZoneNotFoundError(ResourceNotFoundError):
    def __init__(self, zone_name: str, private: bool):
        visibility = "private" if private else "public"
        super().__init__(f"Hosted zone not found: {visibility} zone '{zone_name}'", "hosted-zone", zone_name)
        self.private = private


class LoadBalancerNotFoundError(ResourceNotFoundError):
    def __init__(self, name: str):
        super().__init__(f"Load balancer not found: {name}", "load-balancer", name)


class ResourceConflictError(ReconcileError):
    """An existing resource is incompatible with the requested configuration."""


class DomainNameError(ReconcileError):
    """A domain name cannot be mapped to an apex hosted zone."""


# ── Provider API ────────────────────────────────────────────────────


class ProviderAPIError(ReconcileError):
    """Error returned by an AWS API call that is not a recognized idempotent outcome."""

    def __init__(self, message: str, code: str | None = None, operation: str | None = None):
        super().__init__(message)
        self.code = code
        self.operation = operation
