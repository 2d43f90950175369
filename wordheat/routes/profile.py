"""
Profile Routes
The signed-in player's coins, inventory and daily missions
"""

from typing import Tuple, Any, Optional, Dict

from ..services.economy_service import CONSUMABLES, utc_today_str
from ..services.profile_service import load_or_create_profile


def handle_profile_routes(
    method: str,
    path: str,
    body: Dict[str, Any],
    username: Optional[str],
) -> Optional[Tuple[int, Any]]:
    """
    Route handler for profile endpoints.

    Returns:
        Tuple of (status_code, response_body) or None if not handled
    """
    if not path.startswith("/api/profile"):
        return None
    if not username:
        return 401, {"detail": "Authentication required"}

    profile = load_or_create_profile(username)

    # GET /api/profile
    if path == "/api/profile" and method == "GET":
        profile.ensure_daily_missions(utc_today_str())
        data = profile.to_dict()
        data["level"] = profile.level()
        data["shop"] = CONSUMABLES
        return 200, data

    # POST /api/profile/missions/{id}/claim
    parts = path.split("/")
    if len(parts) == 6 and parts[3] == "missions" and parts[5] == "claim" and method == "POST":
        profile.ensure_daily_missions(utc_today_str())
        reward = profile.claim_mission(parts[4])
        if not reward:
            return 400, {"detail": "Mission not complete or already claimed"}
        return 200, {"reward": reward, "coins": profile.coins}

    return None
