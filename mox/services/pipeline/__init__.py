from mox.services.pipeline.actions import Actions
from mox.services.pipeline.body_codec import BodyCodec, default_body_codec
from mox.services.pipeline.dispatcher import UpstreamDispatcher
from mox.services.pipeline.engine import ActionsOptions, ChainHandler, ExecutionEngine, Phase
from mox.services.pipeline.models import ExecutionContext, InterceptedRequest, ResponseSink, UpstreamResponse
from mox.services.pipeline.passthrough import PassthroughProxy
from mox.services.pipeline.transformers import PASS_THROUGH, Transformer

__all__ = [
    'Actions',
    'ActionsOptions',
    'BodyCodec',
    'ChainHandler',
    'ExecutionContext',
    'ExecutionEngine',
    'InterceptedRequest',
    'PASS_THROUGH',
    'PassthroughProxy',
    'Phase',
    'ResponseSink',
    'Transformer',
    'UpstreamDispatcher',
    'UpstreamResponse',
    'default_body_codec',
]
