"""Transformer variant: flags plus optional request/response hooks."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

if TYPE_CHECKING:
    from mox.services.pipeline.models import ExecutionContext, InterceptedRequest

RequestHook = Callable[['InterceptedRequest', 'ExecutionContext'], Union['InterceptedRequest', Awaitable['InterceptedRequest']]]
ResponseHook = Callable[[Any, 'ExecutionContext'], Any]


async def resolve(value: Any) -> Any:
    """Await value if it is awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


def call_flexible(fn: Callable, *args: Any) -> Any:
    """Call fn with as many leading positional args as it accepts."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return fn(*args)

    params = list(signature.parameters.values())
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return fn(*args)

    positional = [p for p in params if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)]
    return fn(*args[: len(positional)])


@dataclass(frozen=True)
class Transformer:
    """One step of a chain.

    A missing hook behaves as the identity, so every transformer can sit in
    either phase of an execution.
    """

    trigger_send: bool = False
    dont_request: bool = False
    full_pass_through: bool = False
    on_request: Optional[RequestHook] = None
    on_response: Optional[ResponseHook] = None
    name: str = 'transformer'

    async def modify_req(self, request: 'InterceptedRequest', context: 'ExecutionContext') -> 'InterceptedRequest':
        if self.on_request is None:
            return request
        return await resolve(self.on_request(request, context))

    async def modify_res(self, body: Any, context: 'ExecutionContext') -> Any:
        if self.on_response is None:
            return body
        return await resolve(self.on_response(body, context))


def request_transformer(fn: RequestHook, name: str = 'request') -> Transformer:
    return Transformer(trigger_send=False, on_request=fn, name=name)


def response_transformer(fn: ResponseHook, name: str = 'response', dont_request: bool = False) -> Transformer:
    # Response transformers always trigger; the first one ends the request phase
    return Transformer(trigger_send=True, dont_request=dont_request, on_response=fn, name=name)


def flex_transformer(fn: Callable[[Any, 'ExecutionContext'], Any], name: str = 'flex') -> Transformer:
    """Transformer running the same hook in whichever phase it is reached."""
    return Transformer(trigger_send=False, on_request=fn, on_response=fn, name=name)


# Appended by compile() so every chain eventually transitions
PASS_THROUGH = Transformer(trigger_send=True, full_pass_through=True, name='pass_through')
