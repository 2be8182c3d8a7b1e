"""把阻塞的模型调用放到工作线程执行。"""

import asyncio
import functools
from concurrent.futures import Executor
from typing import Any, Callable, Optional


def run_blocking(
    func: Callable[..., Any],
    /,
    *args: Any,
    executor: Optional[Executor] = None,
) -> "asyncio.Future[Any]":
    """在线程池中执行 func，返回可 await 的 Future。

    返回的是底层 Future 而不是协程：调用方可以先用 asyncio.shield
    包一层做超时，超时后仍能继续等待线程真正结束。
    """
    loop = asyncio.get_running_loop()
    bound = functools.partial(func, *args)
    return loop.run_in_executor(executor, bound)


async def wait_bounded(future: "asyncio.Future[Any]", timeout: Optional[float]) -> Any:
    """带超时等待 future；超时抛 asyncio.TimeoutError，但不取消底层工作。"""
    return await asyncio.wait_for(asyncio.shield(future), timeout)


def abandon(future: "asyncio.Future[Any]") -> None:
    """不再关心 future 的结果；取走异常以免事件循环报 "never retrieved"。"""

    def _consume(f: "asyncio.Future[Any]") -> None:
        if not f.cancelled():
            f.exception()

    future.add_done_callback(_consume)
