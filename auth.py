import hmac

from fastapi import Header, HTTPException

import config


def verify_api_key(x_api_key: str = Header(...)) -> str:
    """Resolve the X-API-Key header to a user id"""
    for key, user_id in config.API_KEYS.items():
        if hmac.compare_digest(key.encode(), x_api_key.encode()):
            return user_id

    raise HTTPException(status_code=401, detail="Invalid API key")
