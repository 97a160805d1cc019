import dataclasses
from unittest.mock import Mock

import pytest

from mox.services.pipeline.transformers import (
    PASS_THROUGH,
    Transformer,
    call_flexible,
    flex_transformer,
    request_transformer,
    response_transformer,
)


class TestTransformer:
    @pytest.mark.asyncio
    async def test_missing_hooks_are_identity(self):
        transformer = Transformer()
        request = Mock()

        assert await transformer.modify_req(request, Mock()) is request
        assert await transformer.modify_res({'a': 1}, Mock()) == {'a': 1}

    @pytest.mark.asyncio
    async def test_async_hooks_are_awaited(self):
        async def double(body, context):
            return body * 2

        transformer = Transformer(on_response=double)

        assert await transformer.modify_res(21, Mock()) == 42

    def test_is_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            PASS_THROUGH.trigger_send = False

    def test_factories_set_flags(self):
        req = request_transformer(lambda r, c: r)
        res = response_transformer(lambda b, c: b)
        mock = response_transformer(lambda b, c: b, dont_request=True)
        flex = flex_transformer(lambda v, c: v)

        assert (req.trigger_send, req.on_response) == (False, None)
        assert (res.trigger_send, res.dont_request, res.on_request) == (True, False, None)
        assert mock.dont_request is True
        assert flex.trigger_send is False
        assert flex.on_request is flex.on_response
        assert (PASS_THROUGH.trigger_send, PASS_THROUGH.full_pass_through) == (True, True)


class TestCallFlexible:
    def test_passes_only_accepted_args(self):
        assert call_flexible(lambda body: body + 1, 1, 'context') == 2
        assert call_flexible(lambda body, context: (body, context), 1, 'context') == (1, 'context')
        assert call_flexible(lambda: 'none', 1, 2, 3) == 'none'

    def test_varargs_receive_everything(self):
        assert call_flexible(lambda *args: args, 1, 2) == (1, 2)

    def test_builtins_without_signature(self):
        assert call_flexible(len, [1, 2]) == 2
