import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Any, List, Optional

import config

logger = logging.getLogger(__name__)

DB_PATH = config.DB_PATH

AUDIT_STATUSES = ('pending', 'running', 'completed', 'failed')

AUDIT_COLUMNS = (
    'id', 'user_id', 'domain', 'status', 'credits_used', 'error_message',
    'started_at', 'completed_at', 'created_at', 'updated_at'
)

ON_PAGE_COLUMNS = (
    'total_pages', 'errors_404', 'errors_5xx', 'missing_titles', 'missing_descriptions',
    'duplicate_titles', 'duplicate_descriptions', 'missing_h1', 'missing_alt_text',
    'avg_load_time', 'mobile_score'
)

BACKLINK_COLUMNS = (
    'total_backlinks', 'referring_domains', 'dofollow_links', 'nofollow_links',
    'toxic_links', 'avg_domain_rank'
)

KEYWORD_COLUMNS = ('total_keywords', 'top3_rankings', 'top10_rankings', 'featured_snippets')

REPORT_COLUMNS = (
    ('id', 'audit_id') + ON_PAGE_COLUMNS + BACKLINK_COLUMNS + KEYWORD_COLUMNS +
    ('critical_issues', 'warnings', 'good_signals', 'raw_data', 'created_at', 'updated_at')
)

INTEGRATION_COLUMNS = (
    'id', 'user_id', 'provider', 'api_login', 'api_password', 'is_active', 'created_at', 'updated_at'
)

# Columns callers may change after insert
AUDIT_UPDATABLE = {'status', 'credits_used', 'error_message', 'started_at', 'completed_at'}
REPORT_UPDATABLE = set(ON_PAGE_COLUMNS + BACKLINK_COLUMNS + KEYWORD_COLUMNS) | {
    'critical_issues', 'warnings', 'good_signals', 'raw_data'
}
INTEGRATION_UPDATABLE = {'api_login', 'api_password', 'is_active'}


def get_connection():
    """Get database connection"""
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute('PRAGMA foreign_keys = ON')
    return conn


def init_db():
    """Create tables if they do not exist"""
    metric_columns = ',\n'.join(
        f'            {name} INTEGER NOT NULL DEFAULT 0'
        for name in ON_PAGE_COLUMNS + BACKLINK_COLUMNS + KEYWORD_COLUMNS
    )

    conn = get_connection()
    try:
        c = conn.cursor()

        c.execute('''
            CREATE TABLE IF NOT EXISTS integrations (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                provider TEXT NOT NULL,
                api_login TEXT NOT NULL,
                api_password TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        c.execute('''
            CREATE TABLE IF NOT EXISTS audits (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                domain TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'running', 'completed', 'failed')),
                credits_used INTEGER NOT NULL DEFAULT 0 CHECK (credits_used >= 0),
                error_message TEXT,
                started_at TEXT,
                completed_at TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        c.execute(f'''
            CREATE TABLE IF NOT EXISTS audit_reports (
                id TEXT PRIMARY KEY,
                audit_id TEXT NOT NULL UNIQUE,
{metric_columns},
                critical_issues TEXT,
                warnings TEXT,
                good_signals TEXT,
                raw_data TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (audit_id) REFERENCES audits (id)
            )
        ''')

        c.execute('CREATE INDEX IF NOT EXISTS idx_audits_user ON audits(user_id)')
        c.execute('CREATE INDEX IF NOT EXISTS idx_integrations_user ON integrations(user_id, provider)')

        conn.commit()
    finally:
        conn.close()

    logger.info("Database initialized at %s", DB_PATH)


def execute_query(query: str, params: tuple = (), fetch: bool = False) -> List[Any]:
    """Execute query with automatic connection handling"""
    conn = None
    try:
        conn = get_connection()
        c = conn.cursor()
        c.execute(query, params)

        if fetch:
            results = c.fetchall()
            conn.commit()
            return [dict(r) for r in results]
        else:
            conn.commit()
            return []
    except Exception:
        if conn:
            conn.rollback()
        logger.exception("Database error running: %s", query.strip().splitlines()[0])
        raise
    finally:
        if conn:
            conn.close()


def execute_update(query: str, params: tuple = ()) -> int:
    """Execute a write and return the number of rows it changed"""
    conn = None
    try:
        conn = get_connection()
        c = conn.cursor()
        c.execute(query, params)
        conn.commit()
        return c.rowcount
    except Exception:
        if conn:
            conn.rollback()
        logger.exception("Database error running: %s", query.strip().splitlines()[0])
        raise
    finally:
        if conn:
            conn.close()


def _now() -> str:
    return datetime.now().isoformat()


def _update(table: str, key: str, key_value: str, allowed: set, fields: dict,
            where: str = '', where_params: tuple = ()) -> int:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Cannot update {table} columns: {', '.join(sorted(unknown))}")
    if not fields:
        return 0

    assignments = ', '.join(f'{name} = ?' for name in fields)
    return execute_update(
        f"UPDATE {table} SET {assignments}, updated_at = ? WHERE {key} = ?{where}",
        tuple(fields.values()) + (_now(), key_value) + where_params
    )


# Audit queries

def create_audit(user_id: str, domain: str) -> str:
    audit_id = str(uuid.uuid4())
    now = _now()

    execute_query(
        """INSERT INTO audits (id, user_id, domain, status, credits_used, created_at, updated_at)
           VALUES (?, ?, ?, 'pending', 0, ?, ?)""",
        (audit_id, user_id, domain, now, now)
    )

    return audit_id


def get_audit(audit_id: str) -> Optional[dict]:
    results = execute_query(
        f"SELECT {', '.join(AUDIT_COLUMNS)} FROM audits WHERE id = ?",
        (audit_id,),
        fetch=True
    )
    return results[0] if results else None


def get_user_audits(user_id: str) -> List[dict]:
    return execute_query(
        f"SELECT {', '.join(AUDIT_COLUMNS)} FROM audits WHERE user_id = ? ORDER BY created_at DESC",
        (user_id,),
        fetch=True
    )


def update_audit(audit_id: str, **fields):
    if 'status' in fields and fields['status'] not in AUDIT_STATUSES:
        raise ValueError(f"Invalid audit status: {fields['status']}")
    _update('audits', 'id', audit_id, AUDIT_UPDATABLE, fields)


def transition_audit(audit_id: str, from_status: str, to_status: str, **fields) -> bool:
    """Move an audit from from_status to to_status; False if it was not in from_status"""
    if to_status not in AUDIT_STATUSES:
        raise ValueError(f"Invalid audit status: {to_status}")
    changed = _update(
        'audits', 'id', audit_id, AUDIT_UPDATABLE, dict(fields, status=to_status),
        where=' AND status = ?', where_params=(from_status,)
    )
    return changed == 1


# Audit report queries

def create_audit_report(audit_id: str) -> str:
    """Insert the zeroed report row for an audit"""
    report_id = str(uuid.uuid4())
    now = _now()

    execute_query(
        "INSERT INTO audit_reports (id, audit_id, created_at, updated_at) VALUES (?, ?, ?, ?)",
        (report_id, audit_id, now, now)
    )

    return report_id


def get_audit_report(audit_id: str) -> Optional[dict]:
    results = execute_query(
        f"SELECT {', '.join(REPORT_COLUMNS)} FROM audit_reports WHERE audit_id = ?",
        (audit_id,),
        fetch=True
    )
    return results[0] if results else None


def update_audit_report(audit_id: str, **fields):
    _update('audit_reports', 'audit_id', audit_id, REPORT_UPDATABLE, fields)


# Integration queries

def create_integration(user_id: str, provider: str, api_login: str, api_password: str) -> str:
    integration_id = str(uuid.uuid4())
    now = _now()

    execute_query(
        """INSERT INTO integrations (id, user_id, provider, api_login, api_password, is_active, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, 1, ?, ?)""",
        (integration_id, user_id, provider, api_login, api_password, now, now)
    )

    return integration_id


def get_user_integrations(user_id: str) -> List[dict]:
    return execute_query(
        f"SELECT {', '.join(INTEGRATION_COLUMNS)} FROM integrations WHERE user_id = ? ORDER BY created_at",
        (user_id,),
        fetch=True
    )


def get_active_integration(user_id: str, provider: str) -> Optional[dict]:
    results = execute_query(
        f"""SELECT {', '.join(INTEGRATION_COLUMNS)} FROM integrations
            WHERE user_id = ? AND provider = ? AND is_active = 1
            ORDER BY created_at DESC LIMIT 1""",
        (user_id, provider),
        fetch=True
    )
    return results[0] if results else None


def update_integration(integration_id: str, **fields):
    _update('integrations', 'id', integration_id, INTEGRATION_UPDATABLE, fields)


def delete_integration(integration_id: str):
    execute_query("DELETE FROM integrations WHERE id = ?", (integration_id,))
