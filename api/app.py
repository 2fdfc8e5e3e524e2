import logging
from contextlib import asynccontextmanager
from typing import List, Optional
from urllib.parse import urlparse

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, field_validator

import config
import models
from auth import verify_api_key
from core.audit_engine import run_audit

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    models.init_db()
    yield


app = FastAPI(title="SEO Audit Service", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def normalize_domain(value: str) -> str:
    """Reduce a URL or hostname to a bare lower-case domain"""
    value = value.strip().lower()
    if '://' not in value:
        value = f"http://{value}"
    host = urlparse(value).hostname or ''
    if host.startswith('www.'):
        host = host[4:]
    return host


# Models
class AuditRequest(BaseModel):
    domain: str

    @field_validator('domain')
    @classmethod
    def valid_domain(cls, value):
        domain = normalize_domain(value)
        if not domain or '.' not in domain:
            raise ValueError("domain must be a hostname such as example.com")
        return domain


class AuditCreatedResponse(BaseModel):
    audit_id: str


class AuditResponse(BaseModel):
    id: str
    domain: str
    status: str
    credits_used: int
    error_message: Optional[str]
    started_at: Optional[str]
    completed_at: Optional[str]
    created_at: str


class AuditReportResponse(BaseModel):
    audit_id: str
    total_pages: int
    errors_404: int
    errors_5xx: int
    missing_titles: int
    missing_descriptions: int
    duplicate_titles: int
    duplicate_descriptions: int
    missing_h1: int
    missing_alt_text: int
    avg_load_time: int
    mobile_score: int
    total_backlinks: int
    referring_domains: int
    dofollow_links: int
    nofollow_links: int
    toxic_links: int
    avg_domain_rank: int
    total_keywords: int
    top3_rankings: int
    top10_rankings: int
    featured_snippets: int
    # JSON-encoded string arrays
    critical_issues: Optional[str]
    warnings: Optional[str]
    good_signals: Optional[str]
    raw_data: Optional[str]
    created_at: str
    updated_at: str


class IntegrationRequest(BaseModel):
    provider: str = config.DATAFORSEO_PROVIDER
    api_login: str
    api_password: str


class IntegrationResponse(BaseModel):
    id: str
    provider: str
    api_login: str
    is_active: bool
    created_at: str


def _owned_audit(audit_id: str, user_id: str) -> dict:
    audit = models.get_audit(audit_id)
    if not audit or audit['user_id'] != user_id:
        raise HTTPException(status_code=404, detail="Audit not found")
    return audit


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "SEO Audit Service"}


# Integrations
@app.get("/integrations", response_model=List[IntegrationResponse])
def list_integrations(user_id: str = Depends(verify_api_key)):
    return models.get_user_integrations(user_id)


@app.post("/integrations", response_model=IntegrationResponse)
def add_integration(integration: IntegrationRequest, user_id: str = Depends(verify_api_key)):
    integration_id = models.create_integration(
        user_id, integration.provider, integration.api_login, integration.api_password
    )
    logger.info("Stored %s credentials for user %s", integration.provider, user_id)
    return next(i for i in models.get_user_integrations(user_id) if i['id'] == integration_id)


@app.delete("/integrations/{integration_id}")
def remove_integration(integration_id: str, user_id: str = Depends(verify_api_key)):
    owned = [i for i in models.get_user_integrations(user_id) if i['id'] == integration_id]
    if not owned:
        raise HTTPException(status_code=404, detail="Integration not found")

    models.delete_integration(integration_id)
    return {"message": "Integration deleted", "id": integration_id}


# Audits
@app.get("/audits", response_model=List[AuditResponse])
def list_audits(user_id: str = Depends(verify_api_key)):
    return models.get_user_audits(user_id)


@app.post("/audits", response_model=AuditCreatedResponse)
def create_audit(
    request: AuditRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(verify_api_key)
):
    """Create a pending audit and run it in the background"""
    integration = models.get_active_integration(user_id, config.DATAFORSEO_PROVIDER)
    if not integration:
        raise HTTPException(
            status_code=400,
            detail="Please configure DataForSEO API credentials in Integrations"
        )

    audit_id = models.create_audit(user_id, request.domain)
    logger.info("Audit %s queued for %s", audit_id, request.domain)

    background_tasks.add_task(
        run_audit, audit_id, request.domain, integration['api_login'], integration['api_password']
    )

    return {"audit_id": audit_id}


@app.get("/audits/{audit_id}", response_model=AuditResponse)
def get_audit(audit_id: str, user_id: str = Depends(verify_api_key)):
    return _owned_audit(audit_id, user_id)


@app.get("/audits/{audit_id}/report", response_model=AuditReportResponse)
def get_audit_report(audit_id: str, user_id: str = Depends(verify_api_key)):
    _owned_audit(audit_id, user_id)

    report = models.get_audit_report(audit_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not available yet")
    return report


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
