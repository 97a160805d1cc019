import pytest

from mox.context import RequestContext, get_correlation_id, get_request_context, request_context_var, set_request_context
from mox.utils import join_url, normalize_headers


def test_normalize_headers_lowercases_and_folds_duplicates():
    headers = [('Accept', 'text/html'), ('accept', 'application/json'), ('Cookie', 'a=1'), ('cookie', 'b=2'), ('X-One', '1')]

    assert normalize_headers(headers) == {'accept': 'text/html, application/json', 'cookie': 'a=1; b=2', 'x-one': '1'}


@pytest.mark.parametrize(
    'base,path,expected',
    [
        ('http://upstream.test', '/api/items?page=2', 'http://upstream.test/api/items?page=2'),
        ('http://upstream.test/', '/api', 'http://upstream.test/api'),
        ('http://upstream.test/prefix', 'api', 'http://upstream.test/prefix/api'),
        ('http://upstream.test', '', 'http://upstream.test'),
    ],
)
def test_join_url(base, path, expected):
    assert join_url(base, path) == expected


def test_request_context_to_dict_skips_unset_fields():
    context = RequestContext(correlation_id='abc', method='GET', extra={'tenant': 't1'})

    assert context.to_dict() == {'correlation_id': 'abc', 'method': 'GET', 'tenant': 't1'}
    assert context.to_dict(include_none=True)['route'] is None


def test_set_request_context_exposes_correlation_id():
    token = request_context_var.set(RequestContext())
    try:
        context = RequestContext(correlation_id='feedface')
        set_request_context(context)

        assert get_request_context() is context
        assert get_correlation_id() == 'feedface'
    finally:
        request_context_var.reset(token)
