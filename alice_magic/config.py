import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Load the .env from the project root if it exists.
# In Docker the variables are already provided by the environment.
env_file = os.path.join(os.path.dirname(__file__), '..', '.env')
if os.path.exists(env_file):
    load_dotenv(env_file)
else:
    # Fall back to the current directory (local runs)
    load_dotenv(override=False)  # override=False keeps variables that are already set


@dataclass
class MagicConfig:
    """Configuration of the stylization service"""

    # Credential for the image model. Checked per request, not here,
    # so the UI can show remediation guidance instead of crashing.
    api_key: str = ""

    # Image model
    model: str = "gemini-2.5-flash-image"
    base_url: str = "https://generativelanguage.googleapis.com"
    request_timeout: float = 120.0

    # Web
    host: str = "0.0.0.0"
    port: int = 9001
    max_upload_mb: int = 15

    log_level: str = "INFO"

    def __post_init__(self):
        """Validate numeric settings after initialization"""
        if self.request_timeout <= 0:
            raise ValueError("REQUEST_TIMEOUT must be positive")
        if self.max_upload_mb <= 0:
            raise ValueError("MAX_UPLOAD_MB must be positive")

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def load_config() -> MagicConfig:
    """Load the configuration from environment variables"""
    return MagicConfig(
        api_key=os.getenv("API_KEY", "").strip(),
        model=os.getenv("IMAGE_GEN_MODEL") or "gemini-2.5-flash-image",
        base_url=os.getenv("IMAGE_GEN_BASE_URL") or "https://generativelanguage.googleapis.com",
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "120")),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "9001")),
        max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", "15")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


# Global configuration
config = load_config()
