"""Global configuration constants for the project.

Defines paths, REST endpoints and default limits used across the deploy
pipeline and its command-line entrypoint.
"""

from __future__ import annotations

from pathlib import Path

# Project directories
PROJECT_ROOT: Path = Path(__file__).resolve().parents[1]
LOG_DIR: Path = PROJECT_ROOT / "logs"
ENV_FILE: Path = PROJECT_ROOT / ".env"

# REST routing
API_ROOT_PATH: str = "/wp-json"
QUERY_ROUTE_PARAM: str = "rest_route"

# REST endpoints (relative to the API root)
PAGES_ENDPOINT: str = "/wp/v2/pages"
MEDIA_ENDPOINT: str = "/wp/v2/media"
MENUS_ENDPOINT: str = "/wp/v2/menus"
CURRENT_USER_ENDPOINT: str = "/wp/v2/users/me"

# Client defaults
DEFAULT_RETRY_ATTEMPTS: int = 0
DEFAULT_RETRY_DELAY_MS: int = 1000
DEFAULT_TIMEOUT_MS: int = 30000
RATE_LIMIT_PERIOD_SECONDS: float = 60.0

# Media defaults
DEFAULT_MEDIA_CONCURRENCY: int = 3
DEFAULT_IMAGE_CONTENT_TYPE: str = "image/jpeg"
DEFAULT_IMAGE_FILENAME: str = "image"
IMAGE_MIME_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "avif": "image/avif",
}

# Page defaults
DEFAULT_PAGE_STATUS: str = "draft"
LIST_PAGE_SIZE: int = 100

# Deployment defaults
DEPLOYMENT_ID_PREFIX: str = "deploy"
NAVIGATION_MENU_NAME: str = "Main Navigation"

# CLI defaults and logging
LOG_FILENAME_DEPLOYER: str = "deployer.log"
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
