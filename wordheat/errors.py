"""
Error Taxonomy
Exceptions raised across the WordHeat services
"""


class WordHeatError(Exception):
    """Base class for all WordHeat errors."""

    status_code = 400
    detail = "Request failed"

    def __init__(self, detail: str = None):
        super().__init__(detail or self.detail)
        self.detail = detail or self.detail


# ============== ORACLE ==============

class OracleError(WordHeatError):
    """The language-model oracle could not answer."""

    status_code = 503
    detail = "Oracle unavailable"


class OracleUnavailable(OracleError):
    """Network, quota or client failure talking to the oracle."""


class MalformedResponse(OracleError):
    """The oracle answered, but not in the expected shape."""

    detail = "Malformed oracle response"


# ============== GAMEPLAY ==============

class InsufficientFunds(WordHeatError):
    status_code = 402
    detail = "Not enough coins!"


class NotApplicableInMode(WordHeatError):
    status_code = 409
    detail = "Not usable in this mode"


class DailyAlreadyPlayed(WordHeatError):
    status_code = 409
    detail = "You've already completed today's challenge!"


class InvalidParameters(WordHeatError):
    detail = "Invalid game parameters"


# ============== LOOKUPS ==============

class ChallengeNotFound(WordHeatError):
    status_code = 404
    detail = "Challenge not found"


class SessionNotFound(WordHeatError):
    status_code = 404
    detail = "Game not found"
