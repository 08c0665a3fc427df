from typing import Any, Mapping, Protocol


class Collector(Protocol):
    """A protocol for classes that collect one section of the git context."""

    async def collect(self) -> Mapping[str, Any]:
        """Collects information and returns it as a mapping of section name to model."""
        ...
