from typing import Any, Awaitable, Callable, Dict, Protocol

EventHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class EventBus(Protocol):
    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...

    async def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        """Hand the payload to the transport; returns once the transport owns it."""
        ...

    async def subscribe(self, topic: str, callback: EventHandler) -> None:
        ...
