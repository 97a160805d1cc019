from mox.config.models import ConfigModel
from mox.routing.router import MoxRouter
from mox.server import MoxServer
from mox.services.pipeline import Actions, InterceptedRequest, ResponseSink

__version__ = '0.1.0'

__all__ = ['Actions', 'ConfigModel', 'InterceptedRequest', 'MoxRouter', 'MoxServer', 'ResponseSink']
