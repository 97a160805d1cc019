import pytest

from mox.services.pipeline.actions import Actions
from mox.services.pipeline.engine import ChainHandler
from mox.services.pipeline.tests.fakes import make_options
from mox.services.pipeline.transformers import PASS_THROUGH


@pytest.fixture
def actions():
    return Actions(make_options())


def flags(transformer):
    return (transformer.name, transformer.trigger_send, transformer.dont_request)


class TestBuilder:
    def test_every_operation_returns_the_builder(self, actions):
        result = (
            actions.delay(1)
            .log()
            .apply(lambda mox: None)
            .req(lambda req: None)
            .goto('/x')
            .set_base('http://other.test')
            .res(lambda res: None)
            .status(204)
            .mutate(lambda body: body)
            .mock({})
            .send()
        )

        assert result is actions
        assert len(actions.transformers) == 11

    def test_request_operations_do_not_trigger(self, actions):
        actions.req(lambda req: None).goto('/x').set_base('http://other.test')

        assert [flags(t) for t in actions.transformers] == [
            ('req', False, False),
            ('goto', False, False),
            ('set_base', False, False),
        ]

    def test_response_operations_trigger(self, actions):
        actions.res(lambda res: None).status(200).mutate(lambda body: body).send().mock({})

        assert [flags(t) for t in actions.transformers] == [
            ('res', True, False),
            ('status', True, False),
            ('mutate', True, False),
            ('send', True, False),
            ('mock', True, True),
        ]

    def test_flex_operations_run_in_both_phases(self, actions):
        actions.delay(5).log(hide_headers=True).apply(lambda mox: None)

        for transformer in actions.transformers:
            assert transformer.trigger_send is False
            assert transformer.on_request is not None
            assert transformer.on_response is not None

    def test_transformers_property_is_a_copy(self, actions):
        actions.send()
        actions.transformers.clear()

        assert len(actions.transformers) == 1


class TestCompile:
    def test_appends_pass_through(self, actions):
        actions.goto('/x')
        handler = actions.compile()

        assert isinstance(handler, ChainHandler)
        assert handler.chain[-1] is PASS_THROUGH
        assert len(handler.chain) == 2

    def test_empty_builder_compiles_to_pure_pass_through(self, actions):
        assert actions.compile().chain == (PASS_THROUGH,)

    def test_does_not_mutate_the_builder(self, actions):
        actions.mock({})
        actions.compile()
        actions.compile()

        assert [t.name for t in actions.transformers] == ['mock']

    def test_chain_is_immutable_tuple(self, actions):
        actions.send()
        handler = actions.compile()
        actions.mutate(lambda body: body)

        assert isinstance(handler.chain, tuple)
        assert [t.name for t in handler.chain] == ['send', 'pass_through']
