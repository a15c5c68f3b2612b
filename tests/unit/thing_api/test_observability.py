"""Tests for logging configuration and HTTP metric labels."""
import io
import json
import logging

import pytest

from conftest import AUTH
from thing_api.observability import logging as obs_logging
from thing_api.observability.middleware import UNMATCHED_PATH


def _request_counts(client):
    """Map (method, path, status) -> count from the /metrics exposition."""
    counts = {}
    for line in client.get('/metrics').text.splitlines():
        if not line.startswith('http_server_requests_total{'):
            continue
        labels, value = line[len('http_server_requests_total{'):].rsplit('} ', 1)
        parsed = dict(part.split('=', 1) for part in labels.split(','))
        key = tuple(parsed[k].strip('"') for k in ('method', 'path', 'status'))
        counts[key] = float(value)
    return counts


class TestRouteLabels:

    def test_resource_ids_use_route_template(self, client):
        client.get('/api/thing/0b5f0c4e-1111', headers=AUTH)
        counts = _request_counts(client)
        assert ('GET', '/api/thing/{resource_id}', '404') in counts
        assert not any(path == '/api/thing/0b5f0c4e-1111' for _, path, _ in counts)

    def test_unknown_paths_share_one_label(self, client):
        before = _request_counts(client).get(('GET', UNMATCHED_PATH, '404'), 0)
        client.get('/api/no-such-kind-4711/x', headers=AUTH)
        client.get('/api/another-unknown-4712', headers=AUTH)
        counts = _request_counts(client)
        assert counts[('GET', UNMATCHED_PATH, '404')] == before + 2
        assert not any('4711' in path or '4712' in path for _, path, _ in counts)


@pytest.fixture
def fresh_logging(monkeypatch):
    monkeypatch.setattr(obs_logging, '_configured', False)
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestConfigureLogging:

    def test_json_lines_with_request_id(self, fresh_logging):
        out = io.StringIO()
        obs_logging.configure_logging('INFO', 'json', stream=out)
        token = obs_logging.request_id_ctx.set('req-12345678')
        try:
            logging.getLogger('thing_api.test').info('plain stdlib record')
        finally:
            obs_logging.request_id_ctx.reset(token)
        entry = json.loads(out.getvalue().strip().splitlines()[-1])
        assert entry['event'] == 'plain stdlib record'
        assert entry['request_id'] == 'req-12345678'
        assert entry['level'] == 'info'
        assert entry['logger'] == 'thing_api.test'

    def test_level_applied(self, fresh_logging):
        out = io.StringIO()
        obs_logging.configure_logging('warning', 'json', stream=out)
        logging.getLogger('thing_api.test').info('dropped')
        logging.getLogger('thing_api.test').warning('kept')
        lines = out.getvalue().strip().splitlines()
        assert [json.loads(line)['event'] for line in lines] == ['kept']

    def test_console_format_is_not_json(self, fresh_logging):
        out = io.StringIO()
        obs_logging.configure_logging('INFO', 'console', stream=out)
        logging.getLogger('thing_api.test').info('console record')
        text = out.getvalue()
        assert 'console record' in text
        with pytest.raises(ValueError):
            json.loads(text.strip().splitlines()[-1])

    def test_configure_is_idempotent(self, monkeypatch):
        monkeypatch.setattr(obs_logging, '_configured', True)
        root = logging.getLogger()
        before = root.handlers[:]
        obs_logging.configure_logging('DEBUG', 'console')
        assert root.handlers == before
