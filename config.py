import os

# Database path - use /tmp for Vercel (writable), local for development
DB_PATH = '/tmp/seo_audit.db' if os.environ.get('VERCEL') else os.environ.get('SEO_AUDIT_DB_PATH', 'seo_audit.db')

# DataForSEO
DATAFORSEO_API_URL = os.environ.get('DATAFORSEO_API_URL', 'https://api.dataforseo.com/v3')
DATAFORSEO_TIMEOUT = float(os.environ.get('DATAFORSEO_TIMEOUT', '30'))
DATAFORSEO_PROVIDER = 'dataforseo'

# LLM
OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY')
OPENAI_BASE_URL = os.environ.get('OPENAI_BASE_URL')
LLM_MODEL = os.environ.get('SEO_AUDIT_LLM_MODEL', 'gpt-4o-mini')

# Task polling (seconds)
TASK_POLL_INTERVAL = float(os.environ.get('TASK_POLL_INTERVAL', '5'))
TASK_POLL_TIMEOUT = float(os.environ.get('TASK_POLL_TIMEOUT', '60'))

# Estimated credit cost per phase
PHASE_CREDITS = {
    'on_page': 250,
    'backlinks': 45,
    'ai_summary': 50,
}

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


def parse_api_keys(raw: str) -> dict:
    """Parse "key:user,key:user" into a key -> user id mapping"""
    keys = {}
    for item in raw.split(','):
        key, sep, user_id = item.strip().partition(':')
        if key and sep and user_id:
            keys[key] = user_id
    return keys


API_KEYS = parse_api_keys(os.environ.get('SEO_AUDIT_API_KEYS', ''))
