"""Route 53 alias records pointing service domains at the load balancer."""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import DomainNameError, HostedZoneNotFoundError, LoadBalancerNotFoundError
from ..provider import invoke, paginate
from .load_balancers import LoadBalancerProvisioner
from .models import MANAGED_BY, DNSRecordState, HostedZoneRef

logger = logging.getLogger(__name__)


def apex_zone_name(domain_name: str) -> str:
    """Assume the hosted zone is the last two labels: ``api.example.com`` -> ``example.com.``.

    Multi-label public suffixes such as ``co.uk`` are not special-cased.
    """
    labels = domain_name.split(".")
    if len(labels) < 2:
        raise DomainNameError(f"Bad domain name: '{domain_name}'")
    return f"{labels[-2]}.{labels[-1]}."


class DNSAttacher:
    def __init__(self, route53: Any, load_balancers: LoadBalancerProvisioner):
        self._route53 = route53
        self._load_balancers = load_balancers

    def list_hosted_zones(self) -> list[HostedZoneRef]:
        zones = paginate(self._route53, "list_hosted_zones", "HostedZones")
        return [
            HostedZoneRef(
                id=z["Id"],
                name=z.get("Name", ""),
                private=bool(z.get("Config", {}).get("PrivateZone", False)),
            )
            for z in zones
        ]

    def find_hosted_zone(self, domain_name: str, private: bool) -> HostedZoneRef:
        zone_name = apex_zone_name(domain_name)
        for zone in self.list_hosted_zones():
            if zone.name == zone_name and zone.private == private:
                return zone
        raise HostedZoneNotFoundError(zone_name, private)

    def attach(self, domain_names: list[str], load_balancer_name: str, private: bool) -> list[DNSRecordState]:
        """UPSERT an alias A record for each domain. The first failure aborts the remaining domains."""
        records: list[DNSRecordState] = []

        for domain_name in domain_names:
            zone = self.find_hosted_zone(domain_name, private)

            balancer = self._load_balancers.find(load_balancer_name)
            if balancer is None:
                raise LoadBalancerNotFoundError(load_balancer_name)

            invoke(
                self._route53.change_resource_record_sets,
                HostedZoneId=zone.id,
                ChangeBatch={
                    "Comment": f"managed by {MANAGED_BY}",
                    "Changes": [{
                        "Action": "UPSERT",
                        "ResourceRecordSet": {
                            "Name": domain_name,
                            "Type": "A",
                            "AliasTarget": {
                                "DNSName": balancer.dns_name,
                                "HostedZoneId": balancer.canonical_hosted_zone_id,
                                "EvaluateTargetHealth": False,
                            },
                        },
                    }],
                },
            )
            logger.info("Upserted alias %s -> %s in zone %s", domain_name, balancer.dns_name, zone.name)
            records.append(DNSRecordState(
                hosted_zone_id=zone.id,
                record_name=domain_name,
                alias_dns_name=balancer.dns_name,
                alias_hosted_zone_id=balancer.canonical_hosted_zone_id,
            ))

        return records
