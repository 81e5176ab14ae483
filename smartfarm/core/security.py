"""Token transports and the JWT strategy shared by both auth backends."""
from fastapi_users.authentication import BearerTransport, CookieTransport, JWTStrategy
from .config import SECRET

TOKEN_LIFETIME_SECONDS = 3600 * 24 * 7  # 7 days

# Browser dashboard
cookie_transport = CookieTransport(cookie_name="auth_cookie", cookie_max_age=TOKEN_LIFETIME_SECONDS)
# API clients (mobile app, scripts)
bearer_transport = BearerTransport(tokenUrl="auth/bearer/login")


def get_jwt_strategy() -> JWTStrategy:
    """Get JWT authentication strategy."""
    return JWTStrategy(secret=SECRET, lifetime_seconds=TOKEN_LIFETIME_SECONDS)
