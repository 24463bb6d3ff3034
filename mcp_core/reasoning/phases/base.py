from abc import ABC, abstractmethod
from typing import Any


class Phase(ABC):
    """One stage of the reasoning state machine."""

    @abstractmethod
    async def run(self, input: Any) -> Any:
        pass
