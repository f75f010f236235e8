"""User-facing search messages.

Every state gets a neutral or positive message. Nothing here may read as an
error: the engine never presents a dead end.
"""

from packmatch.core.fallback import FALLBACK_MESSAGE
from packmatch.core.intent_guard import NO_SIGNAL_MESSAGE
from packmatch.core.schemas_search import ConnectivityState, SearchState

ASK_AGAIN_MESSAGE = "Didn't quite catch that. Try asking about food, getting around, or safety."
NO_PACK_MESSAGE = "Download a city pack to search offline."

# Error-toned wording that must never reach the user
AVOID_PHRASES = (
    "error",
    "failed",
    "unavailable",
    "connection failed",
    "network error",
    "unable to connect",
    "search failed",
    "no connection",
    "offline mode",
    "limited functionality",
)


def _found(count: int, suffix: str) -> str:
    return f"Found {count} result{'s' if count != 1 else ''} {suffix}"


def connectivity_message(connectivity: ConnectivityState | None, count: int = 0) -> str:
    """Status line that reflects network state without sounding broken."""
    if connectivity is None:
        return _found(count, "in your pack") if count else "Searching your pack..."

    if connectivity == ConnectivityState.OFFLINE:
        return "Showing results from your downloaded pack"
    if connectivity == ConnectivityState.POOR:
        return "Using your downloaded pack (connection is slow)"
    return _found(count, "in your pack") if count else "Searching your pack..."


def outcome_message(
    state: SearchState,
    count: int = 0,
    connectivity: ConnectivityState | None = None,
) -> str:
    """Message for a routed search."""
    if state == SearchState.LOCAL_RESULTS:
        if connectivity in (ConnectivityState.OFFLINE, ConnectivityState.POOR):
            return _found(count, "from your downloaded pack")
        return _found(count, "in your pack")
    if state == SearchState.FALLBACK:
        return FALLBACK_MESSAGE
    if state == SearchState.NO_SIGNAL:
        return NO_SIGNAL_MESSAGE
    if state == SearchState.ASK_AGAIN:
        return ASK_AGAIN_MESSAGE
    return NO_PACK_MESSAGE
