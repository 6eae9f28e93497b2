"""Data models for the AWS resources that make up a load-balanced service."""

from __future__ import annotations

from dataclasses import dataclass, field

RESOURCE_NAME_PREFIX = "awsum-ilb-svc-"

MANAGED_BY = "awsum-ilb"


@dataclass(frozen=True)
class ServiceIdentity:
    """A service name and the canonical resource name derived from it."""

    service_name: str

    @property
    def resource_name(self) -> str:
        """Name shared by the security group, target group, load balancer and listener."""
        return f"{RESOURCE_NAME_PREFIX}{self.service_name}"


@dataclass(frozen=True)
class SecurityRule:
    port: int
    protocol: str
    cidr: str = "0.0.0.0/0"


@dataclass(frozen=True)
class TargetGroupState:
    arn: str
    name: str
    port: int
    protocol: str
    vpc_id: str


@dataclass(frozen=True)
class LoadBalancerState:
    arn: str
    name: str
    dns_name: str
    canonical_hosted_zone_id: str
    subnet_ids: tuple[str, ...] = ()
    security_group_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class CertificateRef:
    arn: str
    domain_name: str


@dataclass(frozen=True)
class ListenerState:
    arn: str
    port: int
    protocol: str
    target_group_arn: str
    certificate_arns: tuple[str, ...] = ()


@dataclass(frozen=True)
class HostedZoneRef:
    id: str
    name: str
    private: bool


@dataclass(frozen=True)
class DNSRecordState:
    hosted_zone_id: str
    record_name: str
    alias_dns_name: str
    alias_hosted_zone_id: str


@dataclass
class ServiceResources:
    """Identifiers of the resources backing one reconciled service."""

    security_group_id: str
    target_group_arn: str
    load_balancer_arn: str
    load_balancer_dns_name: str
    listener_arn: str = ""
    listener_protocol: str = "HTTP"
    domain_names: list[str] = field(default_factory=list)

    @property
    def host(self) -> str:
        """The first attached domain name, or the load balancer DNS name when none were attached."""
        if self.domain_names:
            return self.domain_names[0]
        return self.load_balancer_dns_name

    def endpoint(self) -> str:
        return f"{self.listener_protocol.lower()}://{self.host}"
