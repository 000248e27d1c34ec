"""Network reachability interface."""

from typing import Protocol


class ReachabilityProbe(Protocol):
    """Interface for checking whether the network service is reachable."""

    async def is_online(self) -> bool:
        """Return True if the device is online. May serve a short-lived cache."""
        ...
