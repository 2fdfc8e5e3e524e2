"""
SEO audit engine.

Runs one audit end to end: on-page crawl, backlink analysis, AI summary.
Progress is only communicated through the audit and report rows; a failure at
any phase marks the audit failed with the credits spent so far.
"""

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import config
import models
from ai.audit_summary.summarizer import AuditSummarizer, AuditSummary
from analyzer import BacklinkMetrics, OnPageMetrics, aggregate_backlinks, aggregate_on_page
from core.credits import CreditLedger
from core.errors import TaskTimeoutError
from services.dataforseo import DataForSEOClient
from toxicity import count_toxic_backlinks

logger = logging.getLogger(__name__)

MAX_CRAWL_PAGES = 100
MAX_BACKLINKS = 100


@dataclass
class AuditResult:
    success: bool
    credits_used: int
    error: Optional[str] = None


def wait_for_task(provider: DataForSEOClient, task_id: str, interval: float, timeout: float,
                  sleep: Callable[[float], None] = time.sleep,
                  clock: Callable[[], float] = time.monotonic):
    """Poll task readiness every `interval` seconds until complete or `timeout` elapses"""
    started = clock()

    while clock() - started < timeout:
        status = provider.get_task_status(task_id)
        if status is not None and status.is_complete:
            logger.info("Task %s complete after %.0fs", task_id, clock() - started)
            return status
        sleep(interval)

    raise TaskTimeoutError("Task timeout")


class AuditEngine:

    def __init__(self, audit_id: str, domain: str, provider: DataForSEOClient,
                 summarizer: AuditSummarizer = None,
                 poll_interval: float = None, poll_timeout: float = None,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.audit_id = audit_id
        self.domain = domain
        self.provider = provider
        self.summarizer = summarizer or AuditSummarizer()
        self.poll_interval = config.TASK_POLL_INTERVAL if poll_interval is None else poll_interval
        self.poll_timeout = config.TASK_POLL_TIMEOUT if poll_timeout is None else poll_timeout
        self.sleep = sleep
        self.clock = clock

    def run_full_audit(self) -> AuditResult:
        audit = models.get_audit(self.audit_id)
        if audit is None:
            logger.error("Audit %s not found", self.audit_id)
            return AuditResult(success=False, credits_used=0, error="Audit not found")
        if audit['status'] != 'pending':
            logger.warning("Audit %s is %s, not starting", self.audit_id, audit['status'])
            return AuditResult(success=False, credits_used=audit['credits_used'],
                               error=f"Audit already {audit['status']}")

        # Only one run may move the audit out of pending
        if not models.transition_audit(self.audit_id, 'pending', 'running',
                                       started_at=datetime.now().isoformat()):
            logger.warning("Audit %s was claimed by another run", self.audit_id)
            return AuditResult(success=False, credits_used=0, error="Audit already started")

        ledger = CreditLedger(config.PHASE_CREDITS)

        try:
            models.create_audit_report(self.audit_id)
            logger.info("Audit %s started for %s", self.audit_id, self.domain)

            on_page = self.run_on_page_phase()
            ledger.charge('on_page')

            backlinks = self.run_backlink_phase()
            ledger.charge('backlinks')

            summary = self.run_summary_phase(on_page, backlinks)
            ledger.charge('ai_summary')

            self.save_report(on_page, backlinks, summary)

            if not models.transition_audit(self.audit_id, 'running', 'completed',
                                           completed_at=datetime.now().isoformat(),
                                           credits_used=ledger.total):
                raise RuntimeError(f"Audit {self.audit_id} left running state before completion")
            logger.info("Audit %s completed, %d credits used %s",
                        self.audit_id, ledger.total, ledger.breakdown())

            return AuditResult(success=True, credits_used=ledger.total)

        except Exception as e:
            logger.exception("Audit %s failed for %s", self.audit_id, self.domain)
            self.mark_failed(ledger.total, str(e) or type(e).__name__)

            return AuditResult(success=False, credits_used=ledger.total, error=str(e))

    def mark_failed(self, credits_used: int, error_message: str):
        try:
            changed = models.transition_audit(
                self.audit_id, 'running', 'failed',
                completed_at=datetime.now().isoformat(),
                credits_used=credits_used,
                error_message=error_message
            )
        except Exception:
            logger.exception("Could not record failure of audit %s", self.audit_id)
            return

        if not changed:
            logger.warning("Audit %s is no longer running, failure not recorded", self.audit_id)

    def run_on_page_phase(self) -> OnPageMetrics:
        task_id = self.provider.start_on_page_crawl(self.domain, max_pages=MAX_CRAWL_PAGES, enable_javascript=True)

        wait_for_task(self.provider, task_id, self.poll_interval, self.poll_timeout,
                      sleep=self.sleep, clock=self.clock)

        summary = self.provider.get_on_page_summary(task_id)
        pages = self.provider.get_on_page_pages(task_id)

        metrics = aggregate_on_page(pages, summary)
        logger.info("Audit %s on-page phase: %d pages analyzed", self.audit_id, metrics.total_pages)
        return metrics

    def run_backlink_phase(self) -> BacklinkMetrics:
        summary = self.provider.get_backlink_summary(self.domain)
        backlinks = self.provider.get_backlinks(self.domain, limit=MAX_BACKLINKS)

        toxic_links = count_toxic_backlinks(backlinks)
        metrics = aggregate_backlinks(summary, backlinks, toxic_links)
        logger.info("Audit %s backlink phase: %d backlinks sampled, %d toxicity points",
                    self.audit_id, len(backlinks), toxic_links)
        return metrics

    def run_summary_phase(self, on_page: OnPageMetrics, backlinks: BacklinkMetrics) -> AuditSummary:
        return self.summarizer.summarize(on_page, backlinks)

    def save_report(self, on_page: OnPageMetrics, backlinks: BacklinkMetrics, summary: AuditSummary):
        """Write every report field in a single update"""
        on_page_data = on_page.model_dump()
        backlink_data = backlinks.model_dump()

        models.update_audit_report(
            self.audit_id,
            **on_page_data,
            **backlink_data,
            critical_issues=json.dumps(summary.critical),
            warnings=json.dumps(summary.warnings),
            good_signals=json.dumps(summary.good),
            raw_data=json.dumps({'on_page': on_page_data, 'backlinks': backlink_data})
        )


def run_audit(audit_id: str, domain: str, login: str, password: str) -> AuditResult:
    """Background entry point: build collaborators and run the audit"""
    provider = DataForSEOClient(login, password)
    engine = AuditEngine(audit_id, domain, provider)
    return engine.run_full_audit()
