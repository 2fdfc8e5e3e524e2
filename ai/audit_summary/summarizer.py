import json
import logging
from typing import Callable, List

from pydantic import BaseModel, ConfigDict, ValidationError

from analyzer import BacklinkMetrics, OnPageMetrics
from core.errors import SummaryError
from .context_builder import SUMMARY_SCHEMA, ContextBuilder
from .llm import invoke_llm

logger = logging.getLogger(__name__)


class AuditSummary(BaseModel):
    model_config = ConfigDict(extra='forbid')

    critical: List[str]
    warnings: List[str]
    good: List[str]


class AuditSummarizer:

    def __init__(self, llm: Callable = None):
        self.llm = llm or invoke_llm
        self.context_builder = ContextBuilder()

    def summarize(self, on_page: OnPageMetrics, backlinks: BacklinkMetrics) -> AuditSummary:
        messages = self.context_builder.messages(on_page, backlinks)

        try:
            content = self.llm(messages=messages, json_schema=SUMMARY_SCHEMA)
        except Exception as e:
            raise SummaryError(f"LLM invocation failed: {e}") from e

        return self.parse(content)

    @staticmethod
    def parse(content) -> AuditSummary:
        if content is None or content == '':
            raise SummaryError("LLM returned an empty response")

        if isinstance(content, (bytes, str)):
            try:
                content = json.loads(content)
            except ValueError as e:
                raise SummaryError(f"LLM response is not valid JSON: {e}") from e

        try:
            summary = AuditSummary.model_validate(content)
        except ValidationError as e:
            raise SummaryError(f"LLM response does not match the summary schema: {e}") from e

        logger.info("AI summary: %d critical, %d warnings, %d good",
                    len(summary.critical), len(summary.warnings), len(summary.good))
        return summary
