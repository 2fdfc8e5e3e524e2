"""
Tests for the DataForSEO client against a mocked requests session.
"""

from unittest.mock import MagicMock

import pytest
import requests

from core.errors import ProviderError
from services.dataforseo import DataForSEOClient


def mock_response(body=None, status_code=200, reason='OK'):
    response = MagicMock()
    response.ok = 200 <= status_code < 300
    response.status_code = status_code
    response.reason = reason
    response.json.return_value = body
    return response


def make_client(*responses):
    session = MagicMock()
    session.headers = {}
    session.request.side_effect = list(responses)
    client = DataForSEOClient('login', 'secret', base_url='https://api.test/v3', timeout=5, session=session)
    return client, session


def tasks(result, **task):
    return {'status_code': 20000, 'tasks': [dict(task, result=result)]}


class TestRequests:

    def test_basic_auth_and_payload(self):
        client, session = make_client(mock_response({'tasks': [{'id': 'abc'}]}))

        assert client.start_on_page_crawl('example.com') == 'abc'
        assert session.auth == ('login', 'secret')

        method, url = session.request.call_args.args
        payload = session.request.call_args.kwargs['json']
        assert method == 'POST'
        assert url == 'https://api.test/v3/on_page/task_post'
        assert payload == [{
            'target': 'example.com',
            'max_crawl_pages': 100,
            'load_resources': True,
            'enable_javascript': True,
            'custom_js': None,
        }]

    def test_http_error(self):
        client, _ = make_client(mock_response({}, status_code=401, reason='Unauthorized'))

        with pytest.raises(ProviderError) as exc:
            client.get_on_page_pages('abc')
        assert exc.value.status_code == 401
        assert 'Unauthorized' in str(exc.value)

    def test_transport_error(self):
        client, session = make_client()
        session.request.side_effect = requests.ConnectionError('refused')

        with pytest.raises(ProviderError) as exc:
            client.get_backlinks('example.com')
        assert exc.value.status_code is None

    def test_missing_task_id(self):
        client, _ = make_client(mock_response({'tasks': [{'id': None, 'status_code': 40501}]}))

        with pytest.raises(ProviderError, match='task start failed'):
            client.start_on_page_crawl('example.com')


class TestParsing:

    def test_pages(self):
        body = tasks([
            {'status_code': 200, 'meta': {'title': 'Home', 'description': None, 'h1': 'Welcome',
                                          'images': [{'alt': None}, {'alt': 'logo'}]},
             'page_timing': {'time_to_interactive': 420.5}},
            {'status_code': None, 'meta': None, 'page_timing': None},
        ])
        client, _ = make_client(mock_response(body))

        pages = client.get_on_page_pages('abc')
        assert len(pages) == 2
        assert pages[0].meta.h1 == ['Welcome']
        assert pages[0].meta.images[0].alt is None
        assert pages[0].page_timing.time_to_interactive == 420.5
        assert pages[1].status_code == 0
        assert pages[1].meta is None

    def test_items_envelope(self):
        body = tasks([{'total_count': 1, 'items': [{'rank': 12, 'anchor': 'docs', 'domain_from': 'a.org'}]}])
        client, _ = make_client(mock_response(body))

        links = client.get_backlinks('example.com', limit=10)
        assert [(l.rank, l.domain_from) for l in links] == [(12, 'a.org')]
        assert client.session.request.call_args.kwargs['json'][0]['limit'] == 10

    def test_referring_domains(self):
        body = tasks([{'total_count': 2, 'items': [
            {'domain': 'a.org', 'rank': 310, 'backlinks': 14},
            {'domain': None, 'rank': None, 'backlinks': None},
        ]}])
        client, session = make_client(mock_response(body))

        domains = client.get_referring_domains('example.com', limit=25)
        assert [(d.domain, d.rank, d.backlinks) for d in domains] == [('a.org', 310, 14), (None, 0, 0)]

        method, url = session.request.call_args.args
        assert method == 'POST'
        assert url == 'https://api.test/v3/backlinks/referring_domains/live'
        assert session.request.call_args.kwargs['json'] == [{'target': 'example.com', 'limit': 25}]

    def test_backlink_summary_defaults(self):
        client, _ = make_client(mock_response(tasks([{'backlinks': 55, 'dofollow': None}])),
                                mock_response(tasks(None)))

        summary = client.get_backlink_summary('example.com')
        assert (summary.backlinks, summary.referring_domains, summary.dofollow, summary.nofollow) == (55, 0, 0, 0)
        assert client.get_backlink_summary('example.com').backlinks == 0

    def test_on_page_summary(self):
        client, _ = make_client(mock_response(tasks([{'checks': {'mobile_friendly': True}}])),
                                mock_response(tasks([])))

        assert client.get_on_page_summary('abc').checks.mobile_friendly is True
        assert client.get_on_page_summary('abc') is None

    def test_task_status(self):
        body = tasks([{'id': 'other', 'status_code': 20000}, {'id': 'abc', 'status_code': 20000}])
        client, session = make_client(mock_response(body), mock_response(tasks([])))

        status = client.get_task_status('abc')
        assert status.is_complete
        assert session.request.call_args.args == ('GET', 'https://api.test/v3/on_page/tasks_ready')
        assert client.get_task_status('abc') is None

    def test_unexpected_shape(self):
        client, _ = make_client(mock_response(tasks([{'rank': 'very high'}])))

        with pytest.raises(ProviderError, match='unexpected response shape'):
            client.get_backlinks('example.com')

    def test_result_not_a_list(self):
        client, _ = make_client(mock_response(tasks({'items': []})))

        with pytest.raises(ProviderError):
            client.get_on_page_pages('abc')
