"""Data models for discovered EC2 instances and the fleet selected for a service."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..exceptions import VPCMismatchError


@dataclass(frozen=True)
class InstanceDescriptor:
    """A single running EC2 instance."""

    instance_id: str
    name: str  # value of the Name tag, empty when untagged
    vpc_id: str
    subnet_id: str
    availability_zone: str | None = None
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class InstanceFleet:
    """The instances selected for one service. All members share one VPC."""

    vpc_id: str
    instances: list[InstanceDescriptor] = field(default_factory=list)

    @classmethod
    def from_instances(cls, instances: list[InstanceDescriptor]) -> InstanceFleet:
        """Build a fleet, raising VPCMismatchError when members span more than one VPC.

        The caller is responsible for rejecting an empty selection.
        """
        vpc_ids = sorted({inst.vpc_id for inst in instances})
        if len(vpc_ids) > 1:
            raise VPCMismatchError(vpc_ids)
        return cls(vpc_id=vpc_ids[0] if vpc_ids else "", instances=list(instances))

    @property
    def instance_ids(self) -> list[str]:
        return [inst.instance_id for inst in self.instances]

    @property
    def subnet_ids(self) -> list[str]:
        """Distinct subnets of the fleet, in first-seen order."""
        seen: dict[str, None] = {}
        for inst in self.instances:
            if inst.subnet_id:
                seen.setdefault(inst.subnet_id, None)
        return list(seen)

    def __len__(self) -> int:
        return len(self.instances)
