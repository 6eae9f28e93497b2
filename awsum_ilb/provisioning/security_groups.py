"""Find-or-create of the service security group and its 0.0.0.0/0 rules."""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import ResourceNotFoundError
from ..provider import ProviderOutcome, invoke, paginate
from .models import MANAGED_BY, SecurityRule

logger = logging.getLogger(__name__)

RULE_DESCRIPTION = f"{MANAGED_BY} service traffic"


class SecurityPolicyResolver:
    """Ensures the named security group exists and carries the service's traffic rules.

    Rules are only ever added. Rules left over from earlier runs stay in place.
    """

    def __init__(self, ec2: Any):
        self._ec2 = ec2

    def find(self, name: str, vpc_id: str) -> str | None:
        """Return the id of the security group with this exact name in the VPC, if any."""
        filters = [{"Name": "group-name", "Values": [name]}]
        if vpc_id:
            filters.append({"Name": "vpc-id", "Values": [vpc_id]})

        groups = paginate(self._ec2, "describe_security_groups", "SecurityGroups", Filters=filters)
        for group in groups:
            if group.get("GroupName") == name:
                return group["GroupId"]
        return None

    def ensure_security_group(self, name: str, vpc_id: str) -> str:
        existing = self.find(name, vpc_id)
        if existing is not None:
            logger.info("Reusing security group %s (%s)", name, existing, extra={"resource_name": name})
            return existing

        logger.info("Creating security group %s in %s", name, vpc_id,
                    extra={"resource_name": name, "vpc_id": vpc_id})
        kwargs: dict[str, Any] = {
            "GroupName": name,
            "Description": f"managed by {MANAGED_BY}",
            "TagSpecifications": [{
                "ResourceType": "security-group",
                "Tags": [
                    {"Key": "Name", "Value": name},
                    {"Key": "ManagedBy", "Value": MANAGED_BY},
                ],
            }],
        }
        if vpc_id:
            kwargs["VpcId"] = vpc_id

        result = invoke(
            self._ec2.create_security_group,
            tolerate=[ProviderOutcome.DUPLICATE_SECURITY_GROUP],
            **kwargs,
        )
        if result.ok:
            return result.response["GroupId"]

        # Created concurrently by another run
        existing = self.find(name, vpc_id)
        if existing is None:
            raise ResourceNotFoundError(
                f"Security group {name} reported as duplicate but not found", "security-group", name,
            )
        return existing

    def authorize_rules(self, group_id: str, port: int, ip_protocol: str) -> SecurityRule:
        """Authorize ingress and egress on ``port`` for 0.0.0.0/0. Duplicates are success."""
        rule = SecurityRule(port=port, protocol=ip_protocol)
        permissions = [{
            "FromPort": port,
            "ToPort": port,
            "IpProtocol": ip_protocol,
            "IpRanges": [{"CidrIp": rule.cidr, "Description": RULE_DESCRIPTION}],
        }]

        for direction, operation in (
            ("ingress", self._ec2.authorize_security_group_ingress),
            ("egress", self._ec2.authorize_security_group_egress),
        ):
            result = invoke(
                operation,
                tolerate=[ProviderOutcome.DUPLICATE_RULE],
                GroupId=group_id,
                IpPermissions=permissions,
            )
            if result.ok:
                logger.info("Authorized %s %s/%d on %s", direction, ip_protocol, port, group_id)
            else:
                logger.debug("%s rule %s/%d already present on %s", direction, ip_protocol, port, group_id)

        return rule
