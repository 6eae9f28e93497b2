"""Argument parsing, configuration loading, and a single reconciliation run."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import signal
import sys
import threading
from types import FrameType

from .config import AppConfig, ServiceConfig, load_config, normalize_service, validate
from .exceptions import ConfigError, ReconcileError
from .logging_config import configure_logging
from .provider import build_clients
from .reconciler import Reconciler

logger = logging.getLogger(__name__)

# flag dest -> ServiceConfig field
_SERVICE_OVERRIDES = {
    "service": "name",
    "name": "instance_name",
    "port": "traffic_port",
    "protocol": "traffic_protocol",
    "lb_port": "listener_port",
    "lb_protocol": "listener_protocol",
    "ip_protocol": "ip_protocol",
    "certs": "certificate_names",
    "domains": "domain_names",
    "private": "private_zone",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="awsum-ilb",
        description="Create or update load balancer resources for a service on running EC2 instances",
    )
    parser.add_argument("-c", "--config", help="Path to a YAML configuration file")
    parser.add_argument("--validate", action="store_true", help="Validate the configuration and exit")
    parser.add_argument("--service", help="Name of the new or existing service to load balance")
    parser.add_argument("--name", help="Fuzzy filter matched against instance Name tags")
    parser.add_argument("--port", type=int, help="Traffic port of the service on the instances")
    parser.add_argument("--protocol", help="Traffic protocol of the service (http|https)")
    parser.add_argument("--lb-port", type=int, help="Listener port on the load balancer")
    parser.add_argument("--lb-protocol", help="Listener protocol on the load balancer (http|https)")
    parser.add_argument("--ip-protocol", help="Underlying IP protocol for security group rules")
    parser.add_argument("--cert", dest="certs", action="append",
                        help="Certificate name fragment matched against ACM domains (repeatable)")
    parser.add_argument("--domain", dest="domains", action="append",
                        help="Domain name to alias to the load balancer (repeatable)")
    parser.add_argument("--private", action="store_true", default=None,
                        help="Attach domains in private hosted zones")
    return parser


def resolve_config(args: argparse.Namespace) -> AppConfig:
    """Load the optional config file and apply command line overrides on top of it."""
    config = load_config(args.config) if args.config else AppConfig()

    overrides = {
        field: getattr(args, dest)
        for dest, field in _SERVICE_OVERRIDES.items()
        if getattr(args, dest) is not None
    }
    service: ServiceConfig = normalize_service(dataclasses.replace(config.service, **overrides))
    config = dataclasses.replace(config, service=service)
    validate(config)
    return config


def _install_signal_handlers(cancel: threading.Event) -> None:
    def _handle(signum: int, frame: FrameType | None) -> None:
        logger.info("Received %s, stopping after the current step", signal.Signals(signum).name)
        cancel.set()

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    configure_logging(config.logging)

    if args.validate:
        logger.info("Configuration is valid")
        return 0

    cancel = threading.Event()
    _install_signal_handlers(cancel)

    try:
        reconciler = Reconciler(build_clients(config.aws), cancel_event=cancel)
        resources = reconciler.reconcile(config.service)
    except ReconcileError as exc:
        logger.error("Fatal error: %s", exc)
        return 1

    print(resources.endpoint())
    return 0
