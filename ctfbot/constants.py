"""
Bot-wide constants for the CTF Arena Discord client.

Colours, labels and limits shared by the panels and the list engine.
"""

class ContestConstants:
    """Constants related to contest lifecycle display."""
    
    NO_CONTEST_KEY = "no-contest"
    NO_CONTEST_LABEL = "No Contest"
    
    # Status badge labels
    LABEL_NONE = "NO CONTEST"
    LABEL_SCHEDULED = "SCHEDULED"
    LABEL_UPCOMING = "UPCOMING"
    LABEL_ONGOING = "ONGOING"
    LABEL_ENDED = "ENDED"

class PaginationConstants:
    """Constants for paginated displays."""
    
    # Discord select menus accept at most 25 options
    MAX_SELECT_OPTIONS = 25
    
    # Page size choices offered by the competition browser
    CHALLENGE_PAGE_SIZE_OPTIONS = (6, 9, 12, 24)

class CacheConstants:
    """Constants for caching behavior."""
    
    # Contest dropdown options (seconds)
    CONTEST_OPTIONS_TTL = 180

class UIConstants:
    """Constants for Discord UI elements."""
    
    # Embed colors
    DEFAULT_EMBED_COLOR = 0x3498db  # Blue
    GOLD_RANK_COLOR = 0xffd700
    ERROR_COLOR = 0xe74c3c
    
    # Status badge colors
    ONGOING_COLOR = 0x10b981   # Emerald
    UPCOMING_COLOR = 0x0ea5e9  # Sky
    ENDED_COLOR = 0x64748b     # Slate
    NONE_COLOR = 0x94a3b8
    
    TROPHY_EMOJI = "🏆"
    GROUP_EMOJI = "👥"
    
    # Discord limits
    EMBED_DESCRIPTION_LIMIT = 4096
    EMBED_FIELD_LIMIT = 1024
