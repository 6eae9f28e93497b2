"""Find-or-create of the service target group and wholesale replacement of its members."""

from __future__ import annotations

import logging
from typing import Any

from ..discovery.models import InstanceFleet
from ..exceptions import ResourceConflictError, ResourceNotFoundError
from ..provider import ProviderOutcome, invoke, paginate
from .models import TargetGroupState

logger = logging.getLogger(__name__)

HEALTH_CHECK_PATH = "/"
HEALTH_CHECK_THRESHOLD = 3
HEALTH_CHECK_SUCCESS_CODES = "200,301,302,304"


class TargetRegistry:
    """Owns the target group for a service and keeps its membership equal to the fleet."""

    def __init__(self, elbv2: Any):
        self._elbv2 = elbv2

    # ── Target group ────────────────────────────────────────────────

    def find(self, name: str) -> TargetGroupState | None:
        groups = paginate(
            self._elbv2, "describe_target_groups", "TargetGroups",
            tolerate=[ProviderOutcome.TARGET_GROUP_NOT_FOUND],
            Names=[name],
        )
        if not groups:
            return None
        return _parse_target_group(groups[0])

    def ensure_target_group(self, name: str, vpc_id: str, port: int, protocol: str) -> TargetGroupState:
        """Return the named target group, creating it with the fixed health check policy if absent.

        An existing group with a different protocol cannot be reused and is a fatal conflict.
        """
        existing = self.find(name)
        if existing is not None:
            if existing.protocol != protocol:
                raise ResourceConflictError(
                    f"Target group {name} uses protocol {existing.protocol}, requested {protocol}"
                )
            logger.info("Reusing target group %s", name, extra={"resource_name": name, "arn": existing.arn})
            return existing

        logger.info("Creating target group %s (%s:%d) in %s", name, protocol, port, vpc_id,
                    extra={"resource_name": name, "vpc_id": vpc_id})
        result = invoke(
            self._elbv2.create_target_group,
            tolerate=[ProviderOutcome.DUPLICATE_TARGET_GROUP],
            Name=name,
            Port=port,
            Protocol=protocol,
            VpcId=vpc_id,
            TargetType="instance",
            HealthCheckPath=HEALTH_CHECK_PATH,
            HealthCheckProtocol=protocol,
            HealthCheckPort="traffic-port",
            HealthyThresholdCount=HEALTH_CHECK_THRESHOLD,
            UnhealthyThresholdCount=HEALTH_CHECK_THRESHOLD,
            Matcher={"HttpCode": HEALTH_CHECK_SUCCESS_CODES},
        )

        if result.ok:
            groups = result.response.get("TargetGroups", [])
            created = _parse_target_group(groups[0]) if groups else None
        else:
            created = self.find(name)

        if created is None:
            raise ResourceNotFoundError("Target group not returned after creation", "target-group", name)
        return created

    # ── Membership ──────────────────────────────────────────────────

    def current_targets(self, target_group_arn: str) -> list[dict[str, Any]]:
        response = invoke(self._elbv2.describe_target_health, TargetGroupArn=target_group_arn).response
        return [
            desc["Target"]
            for desc in response.get("TargetHealthDescriptions", [])
            if desc.get("Target")
        ]

    def replace_membership(self, target_group_arn: str, fleet: InstanceFleet, port: int) -> list[str]:
        """Deregister every current target, then register each fleet member at ``port``.

        A failure part way through registration leaves the group partially registered.
        """
        targets = self.current_targets(target_group_arn)

        # Deregistering an empty target list is rejected by the API
        if targets:
            logger.info("Deregistering %d targets from %s", len(targets), target_group_arn,
                        extra={"arn": target_group_arn})
            invoke(self._elbv2.deregister_targets, TargetGroupArn=target_group_arn, Targets=targets)

        for instance_id in fleet.instance_ids:
            invoke(
                self._elbv2.register_targets,
                TargetGroupArn=target_group_arn,
                Targets=[{"Id": instance_id, "Port": port}],
            )
            logger.debug("Registered %s:%d in %s", instance_id, port, target_group_arn)

        logger.info("Registered %d targets in %s", len(fleet), target_group_arn,
                    extra={"arn": target_group_arn, "total_instances": len(fleet)})
        return fleet.instance_ids


def _parse_target_group(raw: dict[str, Any]) -> TargetGroupState:
    return TargetGroupState(
        arn=raw["TargetGroupArn"],
        name=raw.get("TargetGroupName", ""),
        port=raw.get("Port", 0),
        protocol=raw.get("Protocol", ""),
        vpc_id=raw.get("VpcId", ""),
    )
