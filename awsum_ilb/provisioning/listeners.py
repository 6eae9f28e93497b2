"""Replaces every listener on a load balancer with a single forwarding listener."""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import ResourceNotFoundError
from ..provider import invoke, paginate
from .models import CertificateRef, ListenerState

logger = logging.getLogger(__name__)


class ListenerBinder:
    """Delete-then-create listener replacement.

    The load balancer has no listener between the deletes and the create, so
    traffic on the port is interrupted for that window.
    """

    def __init__(self, elbv2: Any):
        self._elbv2 = elbv2

    def list_listeners(self, load_balancer_arn: str) -> list[dict[str, Any]]:
        return paginate(self._elbv2, "describe_listeners", "Listeners", LoadBalancerArn=load_balancer_arn)

    def rebind(
        self,
        load_balancer_arn: str,
        target_group_arn: str,
        port: int,
        protocol: str,
        certificates: list[CertificateRef],
    ) -> ListenerState:
        existing = self.list_listeners(load_balancer_arn)
        for listener in existing:
            invoke(self._elbv2.delete_listener, ListenerArn=listener["ListenerArn"])
            logger.info("Deleted listener %s:%s", listener.get("Protocol"), listener.get("Port"),
                        extra={"arn": listener["ListenerArn"]})

        kwargs: dict[str, Any] = {
            "LoadBalancerArn": load_balancer_arn,
            "Port": port,
            "Protocol": protocol,
            "DefaultActions": [{
                "Type": "forward",
                "ForwardConfig": {"TargetGroups": [{"TargetGroupArn": target_group_arn}]},
            }],
        }
        if certificates:
            kwargs["Certificates"] = [{"CertificateArn": cert.arn} for cert in certificates]

        response = invoke(self._elbv2.create_listener, **kwargs).response
        listeners = response.get("Listeners", [])
        if not listeners:
            raise ResourceNotFoundError("Listener not returned after creation", "listener", load_balancer_arn)

        listener_arn = listeners[0]["ListenerArn"]
        logger.info("Created listener %s:%d forwarding to %s", protocol, port, target_group_arn,
                    extra={"arn": listener_arn})
        return ListenerState(
            arn=listener_arn,
            port=port,
            protocol=protocol,
            target_group_arn=target_group_arn,
            certificate_arns=tuple(cert.arn for cert in certificates),
        )
