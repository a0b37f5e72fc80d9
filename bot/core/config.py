import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Shares the project .env with the web service; already-exported
# variables win, so container environments need no file at all.
env_file = os.path.join(os.path.dirname(__file__), '..', '..', '.env')
load_dotenv(env_file if os.path.exists(env_file) else None, override=False)


@dataclass
class BotConfig:
    """Telegram front end settings"""

    bot_token: str
    log_level: str = "INFO"
    # DEBUG=true forces debug logging regardless of LOG_LEVEL
    debug: bool = False

    def __post_init__(self):
        if not self.bot_token:
            raise ValueError("BOT_TOKEN not found in environment variables")

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level.upper()


def load_config() -> BotConfig:
    return BotConfig(
        bot_token=os.getenv("BOT_TOKEN", "").strip(),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        debug=os.getenv("DEBUG", "false").strip().lower() in ("1", "true", "yes"),
    )
