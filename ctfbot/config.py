import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Bot configuration settings"""
    
    # Discord settings
    DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
    DISCORD_GUILD_ID = int(os.getenv('DISCORD_GUILD_ID', 0))
    DISCORD_GUILD_IDS = os.getenv('DISCORD_GUILD_IDS', '')  # Comma-separated for multi-guild support
    
    # Platform API settings
    API_BASE_URL = os.getenv('API_BASE_URL', '')
    API_TOKEN = os.getenv('API_TOKEN', '')
    API_TIMEOUT = float(os.getenv('API_TIMEOUT', 15))
    
    # Bot settings
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')  # Empty disables file logging
    
    # Panel timing
    SEARCH_DEBOUNCE_SECONDS = float(os.getenv('SEARCH_DEBOUNCE_SECONDS', 0.3))
    FLASH_MESSAGE_SECONDS = float(os.getenv('FLASH_MESSAGE_SECONDS', 3.2))
    VIEW_TIMEOUT_SECONDS = int(os.getenv('VIEW_TIMEOUT_SECONDS', 900))
    
    # Page sizes
    LEADERBOARD_PAGE_SIZE = int(os.getenv('LEADERBOARD_PAGE_SIZE', 20))
    CHALLENGE_PAGE_SIZE = int(os.getenv('CHALLENGE_PAGE_SIZE', 9))
    ADMIN_PAGE_SIZE = int(os.getenv('ADMIN_PAGE_SIZE', 10))
    
    @classmethod
    def get_guild_ids(cls):
        """Get list of guild IDs for command syncing"""
        if cls.DISCORD_GUILD_IDS:
            try:
                return [int(guild_id.strip()) for guild_id in cls.DISCORD_GUILD_IDS.split(',') if guild_id.strip()]
            except ValueError:
                raise ValueError("DISCORD_GUILD_IDS must be comma-separated integers")
        elif cls.DISCORD_GUILD_ID:
            return [cls.DISCORD_GUILD_ID]
        else:
            # Global sync
            return []
    
    @classmethod
    def validate(cls):
        """Validate that required configuration is present"""
        if not cls.DISCORD_TOKEN:
            raise ValueError("DISCORD_TOKEN is required")
        if not cls.API_BASE_URL:
            raise ValueError("API_BASE_URL is required")
        if not 0.3 <= cls.SEARCH_DEBOUNCE_SECONDS <= 0.35:
            raise ValueError("SEARCH_DEBOUNCE_SECONDS must be between 0.3 and 0.35")
        if not 3.2 <= cls.FLASH_MESSAGE_SECONDS <= 3.5:
            raise ValueError("FLASH_MESSAGE_SECONDS must be between 3.2 and 3.5")
