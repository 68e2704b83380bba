import logging
import jwt
import os

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("SECRET_KEY", "your_secret_key")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
# Tokens minted by the auth provider carry an audience; verification is skipped when unset
AUDIENCE = os.getenv("JWT_AUDIENCE")


def decode_access_token(token: str):
    try:
        options = {} if AUDIENCE else {"verify_aud": False}
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], audience=AUDIENCE, options=options)
        return payload
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired access token")
        return None
    except jwt.InvalidTokenError:
        return None


def get_current_user(token: str):
    """Extract user_id from JWT token, falling back to the standard sub claim"""
    payload = decode_access_token(token)
    if not payload:
        return None
    return payload.get("user_id") or payload.get("sub")
