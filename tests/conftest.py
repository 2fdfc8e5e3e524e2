"""
Pytest configuration and shared fixtures.

Provides a throwaway sqlite database, a scripted DataForSEO provider and a
canned LLM so audits can run end to end without network access.
"""

import json

import pytest

import models
from ai.audit_summary.summarizer import AuditSummary
from analyzer import BacklinkMetrics, OnPageMetrics
from services.provider_models import (
    BacklinkRecord,
    BacklinkSummary,
    OnPageSummary,
    PageRecord,
    TaskStatus,
)


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Point the models module at a fresh database file"""
    monkeypatch.setattr(models, 'DB_PATH', str(tmp_path / 'audit.db'))
    models.init_db()
    return models


class FakeClock:
    """Deterministic clock; sleeping advances time"""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeProvider:
    """Scripted stand-in for DataForSEOClient"""

    def __init__(self, pages=None, summary=None, backlink_summary=None, backlinks=None,
                 ready_after=0, task_id='task-1'):
        self.task_id = task_id
        self.pages = pages if pages is not None else []
        self.summary = summary
        self.backlink_summary = backlink_summary or BacklinkSummary()
        self.backlinks = backlinks if backlinks is not None else []
        self.ready_after = ready_after
        self.status_calls = 0
        self.calls = []
        self.fail_on = {}

    def _record(self, name):
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    def start_on_page_crawl(self, domain, max_pages=100, enable_javascript=True):
        self._record('start_on_page_crawl')
        return self.task_id

    def get_task_status(self, task_id):
        self._record('get_task_status')
        self.status_calls += 1
        if self.ready_after is None or self.status_calls <= self.ready_after:
            return TaskStatus(id=task_id, status_code=40602, status_message='Task in queue.')
        return TaskStatus(id=task_id, status_code=20000, status_message='Ok.')

    def get_on_page_summary(self, task_id):
        self._record('get_on_page_summary')
        return self.summary

    def get_on_page_pages(self, task_id):
        self._record('get_on_page_pages')
        return self.pages

    def get_backlink_summary(self, domain):
        self._record('get_backlink_summary')
        return self.backlink_summary

    def get_backlinks(self, domain, limit=100):
        self._record('get_backlinks')
        return self.backlinks[:limit]


def make_page(status_code=200, title='Home', description='Welcome', h1=('Home',),
              images=(), time_to_interactive=None):
    return PageRecord.model_validate({
        'status_code': status_code,
        'meta': {
            'title': title,
            'description': description,
            'h1': list(h1),
            'images': [{'alt': alt} for alt in images],
        },
        'page_timing': {'time_to_interactive': time_to_interactive},
    })


def make_backlink(rank=50, anchor='example', domain_from='blog.example.org'):
    return BacklinkRecord(rank=rank, anchor=anchor, domain_from=domain_from)


CANNED_SUMMARY = {
    'critical': ['Two pages return 404'],
    'warnings': ['Slow time to interactive'],
    'good': ['Mobile friendly'],
}


@pytest.fixture
def fake_llm():
    """LLM stub that records prompts and returns CANNED_SUMMARY as JSON text"""
    calls = []

    def llm(messages, json_schema):
        calls.append({'messages': messages, 'json_schema': json_schema})
        return json.dumps(CANNED_SUMMARY)

    llm.calls = calls
    return llm


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    return FakeProvider(
        pages=[
            make_page(title='Home', time_to_interactive=100),
            make_page(status_code=404, title='Home', time_to_interactive=200),
            make_page(status_code=503, title=None, description=None, h1=(), images=('', 'logo'),
                      time_to_interactive=300),
        ],
        summary=OnPageSummary.model_validate({'checks': {'mobile_friendly': True}}),
        backlink_summary=BacklinkSummary(backlinks=120, referring_domains=30, dofollow=90, nofollow=30),
        backlinks=[
            make_backlink(rank=40),
            make_backlink(rank=5, anchor='buy', domain_from='x.xyz'),
        ],
        ready_after=1,
    )


def decode_report(report):
    """Rebuild the typed metrics and summary lists from a stored report row"""
    on_page = OnPageMetrics.model_validate({k: report[k] for k in OnPageMetrics.model_fields})
    backlinks = BacklinkMetrics.model_validate({k: report[k] for k in BacklinkMetrics.model_fields})
    summary = AuditSummary(
        critical=json.loads(report['critical_issues'] or '[]'),
        warnings=json.loads(report['warnings'] or '[]'),
        good=json.loads(report['good_signals'] or '[]')
    )
    return on_page, backlinks, summary
