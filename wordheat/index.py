"""Vercel serverless function for the WordHeat API with Upstash Redis storage."""

import json
import os
import urllib.parse
from http.server import BaseHTTPRequestHandler

from upstash_ratelimit import Ratelimit, FixedWindow

from .data.redis_client import get_redis
from .routes import handle_session_routes, handle_challenge_routes, handle_profile_routes
from .security.auth import get_current_user
from .security.env_validator import validate_required_env_vars
from .security.validators import validate_request_body_size, get_request_size_limit


# ============== RATE LIMITING ==============

# Rate limiters (lazy initialized)
_ratelimit_general = None
_ratelimit_session_create = None
_ratelimit_guess = None


def get_ratelimit_general():
    """General rate limiter: 60 requests/minute per IP."""
    global _ratelimit_general
    if _ratelimit_general is None:
        _ratelimit_general = Ratelimit(
            redis=get_redis(),
            limiter=FixedWindow(max_requests=60, window=60),
            prefix="ratelimit:general",
        )
    return _ratelimit_general


def get_ratelimit_session_create():
    """Session and challenge creation rate limiter: 10/minute per IP."""
    global _ratelimit_session_create
    if _ratelimit_session_create is None:
        _ratelimit_session_create = Ratelimit(
            redis=get_redis(),
            limiter=FixedWindow(max_requests=10, window=60),
            prefix="ratelimit:create",
        )
    return _ratelimit_session_create


def get_ratelimit_guess():
    """Guess rate limiter: 30 guesses/minute per IP."""
    global _ratelimit_guess
    if _ratelimit_guess is None:
        _ratelimit_guess = Ratelimit(
            redis=get_redis(),
            limiter=FixedWindow(max_requests=30, window=60),
            prefix="ratelimit:guess",
        )
    return _ratelimit_guess


def check_rate_limit(limiter, identifier: str) -> bool:
    """Returns True if request is allowed, False if rate limited."""
    try:
        result = limiter.limit(identifier)
        return result.allowed
    except Exception as e:
        # If rate limiting fails, allow the request (fail open)
        print(f"[SECURITY] Rate limit check failed: {e}")
        return True


def get_client_ip(headers) -> str:
    """Extract client IP from headers."""
    # X-Forwarded-For may contain multiple IPs; take the first one
    forwarded = headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    real_ip = headers.get('X-Real-IP', '')
    if real_ip:
        return real_ip.strip()
    return 'unknown'


def pick_rate_limiter(method: str, path: str):
    """The tightest limiter that applies to a request."""
    if method == 'POST' and path in ('/api/sessions', '/api/challenges'):
        return get_ratelimit_session_create(), "Too many new games. Please wait."
    if method == 'POST' and path.endswith('/guess'):
        return get_ratelimit_guess(), "Too many guesses. Slow down!"
    return get_ratelimit_general(), "Too many requests. Please wait."


# ============== HANDLER ==============

ALLOWED_ORIGINS = [o for o in [os.getenv('SITE_URL', '')] if o]

# Allow localhost in development
DEV_MODE = os.getenv('VERCEL_ENV', 'development') == 'development'

# Check configuration once per cold start outside development
if not DEV_MODE:
    try:
        validate_required_env_vars(strict=True)
    except RuntimeError as e:
        print(f"[SECURITY FATAL] {e}")


class handler(BaseHTTPRequestHandler):
    def _get_cors_origin(self):
        """Get the appropriate CORS origin header value."""
        origin = self.headers.get('Origin', '')
        if origin in ALLOWED_ORIGINS:
            return origin
        if DEV_MODE and origin.startswith('http://localhost:'):
            return origin
        return ALLOWED_ORIGINS[0] if ALLOWED_ORIGINS else ''

    def _send_cors_headers(self):
        cors_origin = self._get_cors_origin()
        if cors_origin:
            self.send_header('Access-Control-Allow-Origin', cors_origin)
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type, Authorization')
        self.send_header('Access-Control-Allow-Credentials', 'true')

    def _send_json(self, data, status=200):
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self._send_cors_headers()
        # Security headers
        self.send_header('X-Content-Type-Options', 'nosniff')
        self.send_header('X-Frame-Options', 'DENY')
        self.send_header('Referrer-Policy', 'strict-origin-when-cross-origin')
        self.send_header('Cache-Control', 'no-store, no-cache, must-revalidate')
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def _send_error(self, message, status=400):
        self._send_json({"detail": message}, status)

    def _get_body(self):
        content_length = int(self.headers.get('Content-Length', 0))
        if content_length:
            return json.loads(self.rfile.read(content_length))
        return {}

    def do_OPTIONS(self):
        self.send_response(200)
        self._send_cors_headers()
        self.send_header('Access-Control-Max-Age', '86400')
        self.end_headers()

    def do_GET(self):
        self._dispatch('GET', {})

    def do_POST(self):
        content_length = int(self.headers.get('Content-Length', 0))
        ok, error = validate_request_body_size(content_length, get_request_size_limit('game_action'))
        if not ok:
            return self._send_error(error, 413)
        try:
            body = self._get_body()
        except ValueError:
            return self._send_error("Invalid JSON body", 400)
        if not isinstance(body, dict):
            return self._send_error("Invalid JSON body", 400)
        self._dispatch('POST', body)

    def _dispatch(self, method, body):
        parsed = urllib.parse.urlsplit(self.path)
        path = parsed.path.rstrip('/')
        query = dict(urllib.parse.parse_qsl(parsed.query))

        limiter, message = pick_rate_limiter(method, path)
        if not check_rate_limit(limiter, get_client_ip(self.headers)):
            return self._send_error(message, 429)

        user = get_current_user(dict(self.headers))
        username = user.username if user else None

        result = (
            handle_session_routes(method, path, body, username)
            or handle_challenge_routes(method, path, body, query, username)
            or handle_profile_routes(method, path, body, username)
        )
        if result is None:
            return self._send_error("Not found", 404)

        status, payload = result
        self._send_json(payload, status)
