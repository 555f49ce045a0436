from datetime import datetime, timedelta, timezone

import jwt

from app.core.config import settings


def generate_test_jwt(user_id=1, username="testuser", expires_in=timedelta(hours=1)):
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "username": username,
        "exp": now + expires_in,
        "iat": now,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
