import asyncio
from typing import Any, Callable, Coroutine, TypeVar

T = TypeVar("T")


async def to_thread(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    return await asyncio.to_thread(func, *args, **kwargs)


def add_async_signal_handler(signal: int, callback: Callable[[], Coroutine[Any, Any, None]]) -> None:
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal, lambda: asyncio.create_task(callback()))


def remove_signal_handler(signal: int) -> bool:
    loop = asyncio.get_running_loop()
    return loop.remove_signal_handler(signal)
