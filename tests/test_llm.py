"""
Tests for the OpenAI chat completion wrapper, with the client mocked out.
"""

from unittest.mock import MagicMock

import pytest

import config
from ai.audit_summary import llm
from ai.audit_summary.context_builder import SUMMARY_SCHEMA

MESSAGES = [{'role': 'system', 'content': 'You are an SEO analyst.'},
            {'role': 'user', 'content': 'Summarize.'}]


def completion(*contents, total_tokens=120):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=c)) for c in contents]
    response.usage.total_tokens = total_tokens
    return response


@pytest.fixture
def client(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(llm, 'get_client', lambda: mock)
    return mock


def test_requests_json_schema_response(client):
    client.chat.completions.create.return_value = completion('{"critical": []}')

    assert llm.invoke_llm(MESSAGES, SUMMARY_SCHEMA) == '{"critical": []}'

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs['response_format'] == {'type': 'json_schema', 'json_schema': SUMMARY_SCHEMA}
    assert kwargs['messages'] is MESSAGES
    assert kwargs['model'] == config.LLM_MODEL


def test_model_override(client):
    client.chat.completions.create.return_value = completion('{}')

    llm.invoke_llm(MESSAGES, SUMMARY_SCHEMA, model='gpt-4o')

    assert client.chat.completions.create.call_args.kwargs['model'] == 'gpt-4o'


def test_empty_choices_return_none(client):
    client.chat.completions.create.return_value = completion()

    assert llm.invoke_llm(MESSAGES, SUMMARY_SCHEMA) is None


def test_first_choice_wins(client):
    client.chat.completions.create.return_value = completion('first', 'second')

    assert llm.invoke_llm(MESSAGES, SUMMARY_SCHEMA) == 'first'
