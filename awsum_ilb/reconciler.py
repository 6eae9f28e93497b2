"""One convergence pass: discover -> filter -> security group -> load balancer -> targets -> listener -> DNS."""

from __future__ import annotations

import logging
import threading
import time

from .config import ServiceConfig
from .discovery import InstanceLister
from .discovery.instance_directory import InstanceDirectory
from .discovery.models import InstanceFleet
from .discovery.name_filter import NameFilter
from .exceptions import NoInstancesError, ReconcileCancelled
from .provider import ProviderClients
from .provisioning.certificates import CertificateResolver
from .provisioning.dns import DNSAttacher
from .provisioning.listeners import ListenerBinder
from .provisioning.load_balancers import LoadBalancerProvisioner
from .provisioning.models import ServiceResources
from .provisioning.security_groups import SecurityPolicyResolver
from .provisioning.target_groups import TargetRegistry

logger = logging.getLogger(__name__)


class Reconciler:
    """Converges the resources of one load-balanced service in dependency order.

    Each step finds its resource by canonical name before creating it, so a run
    that failed part way is resumed by simply running again. Nothing is rolled
    back on failure.
    """

    def __init__(
        self,
        clients: ProviderClients,
        cancel_event: threading.Event | None = None,
        directory: InstanceLister | None = None,
    ):
        self._directory: InstanceLister = directory or InstanceDirectory(clients.ec2)
        self._security = SecurityPolicyResolver(clients.ec2)
        self._load_balancers = LoadBalancerProvisioner(clients.elbv2, clients.ec2)
        self._targets = TargetRegistry(clients.elbv2)
        self._certificates = CertificateResolver(clients.acm)
        self._listeners = ListenerBinder(clients.elbv2)
        self._dns = DNSAttacher(clients.route53, self._load_balancers)
        self._cancel = cancel_event or threading.Event()

    def select_fleet(self, options: ServiceConfig) -> InstanceFleet:
        """List running instances and apply the name filter. No mutating calls are made."""
        instances = NameFilter(options.instance_name).apply(self._directory.list_running())
        if not instances:
            raise NoInstancesError(options.instance_name)
        return InstanceFleet.from_instances(instances)

    def reconcile(self, options: ServiceConfig) -> ServiceResources:
        start = time.monotonic()
        name = options.identity.resource_name
        logger.info("Reconciling service %s as %s", options.name, name,
                    extra={"service": options.name, "resource_name": name})

        self._checkpoint("discovery")
        fleet = self.select_fleet(options)
        logger.info("Fleet of %d instances in %s", len(fleet), fleet.vpc_id,
                    extra={"service": options.name, "vpc_id": fleet.vpc_id, "total_instances": len(fleet)})

        self._checkpoint("security group")
        security_group_id = self._security.ensure_security_group(name, fleet.vpc_id)
        for port in self._rule_ports(options):
            self._security.authorize_rules(security_group_id, port, options.ip_protocol)

        self._checkpoint("load balancer")
        balancer = self._load_balancers.ensure_load_balancer(
            name, security_group_id, fleet.subnet_ids, fleet.vpc_id,
        )

        self._checkpoint("target group")
        target_group = self._targets.ensure_target_group(
            name, fleet.vpc_id, options.traffic_port, options.traffic_protocol,
        )
        self._targets.replace_membership(target_group.arn, fleet, options.traffic_port)

        self._checkpoint("certificates")
        certificates = self._certificates.resolve(options.certificate_names)

        self._checkpoint("listener")
        listener = self._listeners.rebind(
            balancer.arn, target_group.arn, options.listener_port, options.listener_protocol, certificates,
        )

        resources = ServiceResources(
            security_group_id=security_group_id,
            target_group_arn=target_group.arn,
            load_balancer_arn=balancer.arn,
            load_balancer_dns_name=balancer.dns_name,
            listener_arn=listener.arn,
            listener_protocol=listener.protocol,
        )

        if options.domain_names:
            self._checkpoint("dns")
            records = self._dns.attach(options.domain_names, name, options.private_zone)
            resources.domain_names = [r.record_name for r in records]

        elapsed = time.monotonic() - start
        logger.info("Reconciliation complete: %s", resources.endpoint(),
                    extra={"service": options.name, "elapsed_seconds": round(elapsed, 2)})
        return resources

    @staticmethod
    def _rule_ports(options: ServiceConfig) -> list[int]:
        """Traffic port, plus the listener port when clients reach the balancer on a different one."""
        ports = [options.traffic_port]
        if options.listener_port != options.traffic_port:
            ports.append(options.listener_port)
        return ports

    def _checkpoint(self, step: str) -> None:
        if self._cancel.is_set():
            logger.warning("Cancellation requested before %s step", step)
            raise ReconcileCancelled(f"Reconciliation cancelled before {step} step")
