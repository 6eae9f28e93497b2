"""Instance discovery: the lister Protocol implemented by the EC2 instance directory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import InstanceDescriptor


@runtime_checkable
class InstanceLister(Protocol):
    """Protocol satisfied by anything that can enumerate running instances."""

    def list_running(self) -> list[InstanceDescriptor]:
        """Return all running instances."""
        ...
