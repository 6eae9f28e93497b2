"""Fuzzy Name-tag filtering for discovered instances."""

from __future__ import annotations

import logging

from .models import InstanceDescriptor

logger = logging.getLogger(__name__)


class NameFilter:
    """Keeps instances whose Name tag contains the pattern (case-sensitive).

    An empty pattern matches nothing.
    """

    def __init__(self, pattern: str):
        self._pattern = pattern

    def apply(self, instances: list[InstanceDescriptor]) -> list[InstanceDescriptor]:
        result = [inst for inst in instances if self.matches(inst)]
        logger.info("Name filter '%s' matched %d of %d instances", self._pattern, len(result), len(instances))
        return result

    def matches(self, instance: InstanceDescriptor) -> bool:
        if not self._pattern:
            return False
        return self._pattern in instance.name
