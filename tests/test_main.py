import sys

from fastapi.testclient import TestClient

from mox.config.models import ConfigModel, LoggingConfig
from mox.main import create_app
from mox.server import MoxServer


def quiet_config(**kwargs) -> ConfigModel:
    return ConfigModel(logging=LoggingConfig(level='WARNING'), **kwargs)


def test_create_app_with_explicit_initializer():
    app = create_app(quiet_config(proxy_unmatched_routes=False), initialize=lambda router: router.get('/hello').mock({'hello': 'world'}))

    client = TestClient(app)

    assert isinstance(app.state.mox_server, MoxServer)
    assert client.get('/hello').json() == {'hello': 'world'}
    assert client.get('/elsewhere').status_code == 404


def test_create_app_loads_configured_routes(tmp_path, monkeypatch):
    (tmp_path / 'mox_main_routes.py').write_text(
        'def register(router):\n'
        "    router.get('/from-config').mock({'loaded': True}, 201)\n"
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.syspath_prepend(str(tmp_path))

    try:
        app = create_app(quiet_config(routes='mox_main_routes:register', proxy_unmatched_routes=False))
        response = TestClient(app).get('/from-config')
    finally:
        sys.modules.pop('mox_main_routes', None)

    assert response.status_code == 201
    assert response.json() == {'loaded': True}
