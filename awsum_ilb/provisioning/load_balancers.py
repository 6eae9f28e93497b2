"""Find-or-create of the internet-facing application load balancer for a service."""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import ResourceNotFoundError
from ..provider import ProviderOutcome, invoke, paginate
from .models import LoadBalancerState

logger = logging.getLogger(__name__)


def select_subnets(fleet_subnet_ids: list[str], vpc_subnets: list[dict[str, Any]]) -> list[str]:
    """Fleet subnets first, then one representative subnet per availability zone not yet covered.

    Internet-facing load balancers must span at least two availability zones and
    accept only one subnet per zone. The representative for a zone is the first
    subnet listed for it.
    """
    zone_of = {s["SubnetId"]: s.get("AvailabilityZone", "") for s in vpc_subnets}

    selected: list[str] = []
    covered: set[str] = set()
    for subnet_id in fleet_subnet_ids:
        zone = zone_of.get(subnet_id, "")
        if subnet_id in selected or (zone and zone in covered):
            continue
        selected.append(subnet_id)
        if zone:
            covered.add(zone)

    for subnet in vpc_subnets:
        zone = subnet.get("AvailabilityZone", "")
        if not zone or zone in covered:
            continue
        selected.append(subnet["SubnetId"])
        covered.add(zone)

    return selected


class LoadBalancerProvisioner:
    """Owns the service load balancer. An existing balancer is reused as-is."""

    def __init__(self, elbv2: Any, ec2: Any):
        self._elbv2 = elbv2
        self._ec2 = ec2

    def find(self, name: str) -> LoadBalancerState | None:
        balancers = paginate(
            self._elbv2, "describe_load_balancers", "LoadBalancers",
            tolerate=[ProviderOutcome.LOAD_BALANCER_NOT_FOUND],
            Names=[name],
        )
        if not balancers:
            return None
        return _parse_load_balancer(balancers[0])

    def vpc_subnets(self, vpc_id: str) -> list[dict[str, Any]]:
        return paginate(
            self._ec2, "describe_subnets", "Subnets",
            Filters=[{"Name": "vpc-id", "Values": [vpc_id]}],
        )

    def ensure_load_balancer(
        self,
        name: str,
        security_group_id: str,
        fleet_subnet_ids: list[str],
        vpc_id: str,
    ) -> LoadBalancerState:
        existing = self.find(name)
        if existing is not None:
            # Subnets and security groups of a reused balancer are not reconciled
            logger.info("Reusing load balancer %s", name, extra={"resource_name": name, "arn": existing.arn})
            return existing

        subnet_ids = select_subnets(fleet_subnet_ids, self.vpc_subnets(vpc_id))
        logger.info("Creating load balancer %s across subnets %s", name, ", ".join(subnet_ids),
                    extra={"resource_name": name, "vpc_id": vpc_id})

        result = invoke(
            self._elbv2.create_load_balancer,
            tolerate=[ProviderOutcome.DUPLICATE_LOAD_BALANCER],
            Name=name,
            Subnets=subnet_ids,
            SecurityGroups=[security_group_id],
            Scheme="internet-facing",
            Type="application",
            IpAddressType="ipv4",
        )

        if result.ok:
            balancers = result.response.get("LoadBalancers", [])
            created = _parse_load_balancer(balancers[0]) if balancers else None
        else:
            created = self.find(name)

        if created is None:
            raise ResourceNotFoundError("Load balancer not returned after creation", "load-balancer", name)
        return created


def _parse_load_balancer(raw: dict[str, Any]) -> LoadBalancerState:
    return LoadBalancerState(
        arn=raw["LoadBalancerArn"],
        name=raw.get("LoadBalancerName", ""),
        dns_name=raw.get("DNSName", ""),
        canonical_hosted_zone_id=raw.get("CanonicalHostedZoneId", ""),
        subnet_ids=tuple(az["SubnetId"] for az in raw.get("AvailabilityZones", []) if az.get("SubnetId")),
        security_group_ids=tuple(raw.get("SecurityGroups", [])),
    )
