"""Call sync or async callables uniformly.

Route handlers and the client's ``on_json_error`` hook can be plain
functions or coroutine functions. The sync/async check lives here only.
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result when it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
