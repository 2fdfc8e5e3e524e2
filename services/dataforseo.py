"""
DataForSEO API client.
Wraps the On-Page and Backlinks endpoints used by the audit engine.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import ValidationError

import config
from core.errors import ProviderError
from services.provider_models import (
    BacklinkRecord,
    BacklinkSummary,
    OnPageSummary,
    PageRecord,
    ProviderModel,
    ReferringDomain,
    TaskStatus,
)

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=ProviderModel)


class DataForSEOClient:
    def __init__(self, login: str, password: str, base_url: str = None,
                 timeout: float = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or config.DATAFORSEO_API_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else config.DATAFORSEO_TIMEOUT
        self.session = session or requests.Session()
        self.session.auth = (login, password)
        self.session.headers.update({
            'Content-Type': 'application/json',
            'User-Agent': 'SEO Audit Service/1.0'
        })

    def _request(self, endpoint: str, method: str = 'GET', payload: Any = None) -> Dict:
        url = f"{self.base_url}{endpoint}"
        try:
            if method == 'GET':
                response = self.session.request(method, url, timeout=self.timeout)
            else:
                response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderError(f"DataForSEO request to {endpoint} failed: {e}") from e

        if not response.ok:
            raise ProviderError(
                f"DataForSEO API error: {response.status_code} {response.reason}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"DataForSEO returned invalid JSON for {endpoint}",
                                status_code=response.status_code) from e

    @staticmethod
    def _first_task(response: Dict) -> Dict:
        tasks = response.get('tasks') if isinstance(response, dict) else None
        if not tasks or not isinstance(tasks[0], dict):
            return {}
        return tasks[0]

    def _results(self, response: Dict) -> List[Dict]:
        result = self._first_task(response).get('result')
        if result is None:
            return []
        if not isinstance(result, list):
            raise ProviderError("unexpected response shape: result is not a list")
        return result

    def _records(self, response: Dict) -> List[Dict]:
        """Record list of a result, unwrapping the `items` envelope newer endpoints use"""
        results = self._results(response)
        if len(results) == 1 and isinstance(results[0], dict) and isinstance(results[0].get('items'), list):
            return results[0]['items']
        return results

    @staticmethod
    def _parse(model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ProviderError(f"unexpected response shape for {model.__name__}: {e}") from e

    def _parse_items(self, model: Type[M], items: List[Any]) -> List[M]:
        return [self._parse(model, item) for item in items if item is not None]

    # On-Page

    def start_on_page_crawl(self, domain: str, max_pages: int = 100, enable_javascript: bool = True) -> str:
        """Post an on-page crawl task and return its id"""
        payload = [{
            'target': domain,
            'max_crawl_pages': max_pages,
            'load_resources': True,
            'enable_javascript': enable_javascript,
            'custom_js': None,
        }]

        response = self._request('/on_page/task_post', 'POST', payload)
        task_id = self._first_task(response).get('id')

        if not task_id:
            raise ProviderError("task start failed")

        logger.info("Started on-page crawl for %s (task %s)", domain, task_id)
        return task_id

    def get_on_page_summary(self, task_id: str) -> Optional[OnPageSummary]:
        results = self._results(self._request(f'/on_page/summary/{task_id}'))
        if not results or results[0] is None:
            return None
        return self._parse(OnPageSummary, results[0])

    def get_on_page_pages(self, task_id: str) -> List[PageRecord]:
        results = self._records(self._request(f'/on_page/pages/{task_id}'))
        return self._parse_items(PageRecord, results)

    def get_task_status(self, task_id: str) -> Optional[TaskStatus]:
        """Return the tasks_ready entry for task_id, or None while it is not listed"""
        results = self._results(self._request('/on_page/tasks_ready'))
        for entry in results:
            if isinstance(entry, dict) and entry.get('id') == task_id:
                return self._parse(TaskStatus, entry)
        return None

    # Backlinks

    def get_backlink_summary(self, domain: str) -> BacklinkSummary:
        payload = [{
            'target': domain,
            'internal_list_limit': 10,
            'backlinks_status_type': 'live',
        }]

        results = self._results(self._request('/backlinks/summary/live', 'POST', payload))
        if not results or results[0] is None:
            return BacklinkSummary()
        return self._parse(BacklinkSummary, results[0])

    def get_backlinks(self, domain: str, limit: int = 100) -> List[BacklinkRecord]:
        payload = [{
            'target': domain,
            'limit': limit,
            'backlinks_status_type': 'live',
        }]

        results = self._records(self._request('/backlinks/backlinks/live', 'POST', payload))
        return self._parse_items(BacklinkRecord, results[:limit])

    def get_referring_domains(self, domain: str, limit: int = 100) -> List[ReferringDomain]:
        payload = [{
            'target': domain,
            'limit': limit,
        }]

        results = self._records(self._request('/backlinks/referring_domains/live', 'POST', payload))
        return self._parse_items(ReferringDomain, results)
