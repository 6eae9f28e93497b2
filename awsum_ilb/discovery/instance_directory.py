"""Enumerates running EC2 instances through the describe_instances paginator."""

from __future__ import annotations

import logging
from typing import Any

from ..provider import paginate
from .models import InstanceDescriptor

logger = logging.getLogger(__name__)

# EC2 state code for "running". The high byte of the code is internal and ignored.
RUNNING_STATE_CODE = 16


class InstanceDirectory:
    """Lists every running instance visible to the EC2 client."""

    def __init__(self, ec2: Any):
        self._ec2 = ec2

    def list_running(self) -> list[InstanceDescriptor]:
        """Return all running instances, in the order EC2 reports them."""
        reservations = paginate(self._ec2, "describe_instances", "Reservations")

        instances: list[InstanceDescriptor] = []
        for reservation in reservations:
            for raw in reservation.get("Instances", []):
                if not self._is_running(raw):
                    continue
                instances.append(self._parse_instance(raw))

        logger.info("Instance directory found %d running instances", len(instances),
                    extra={"total_instances": len(instances)})
        return instances

    @staticmethod
    def _is_running(raw: dict[str, Any]) -> bool:
        state = raw.get("State")
        if not state or "Code" not in state:
            return False
        return (int(state["Code"]) & 0xFF) == RUNNING_STATE_CODE

    @staticmethod
    def _parse_instance(raw: dict[str, Any]) -> InstanceDescriptor:
        tags = {t["Key"]: t["Value"] for t in raw.get("Tags", [])}
        placement = raw.get("Placement", {})

        return InstanceDescriptor(
            instance_id=raw["InstanceId"],
            name=tags.get("Name", ""),
            vpc_id=raw.get("VpcId", ""),
            subnet_id=raw.get("SubnetId", ""),
            availability_zone=placement.get("AvailabilityZone") or None,
            tags=tags,
        )
