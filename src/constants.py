"""Application constants - centralized configuration values."""

# =============================================================================
# Limits
# =============================================================================
MAX_CATALOG_ITEMS = 1000  # Max items per full-catalog save
MAX_IMPORT_ITEMS = 5000  # Max items per backup import
MAX_IMPORT_ERRORS_RETURNED = 20
CATALOG_NAME_MAX_LENGTH = 255
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128

# =============================================================================
# API Timeouts (in seconds)
# =============================================================================
HTTPX_TIMEOUT = 10.0

# =============================================================================
# Session & Security
# =============================================================================
SESSION_TIMEOUT_DAYS = 7
SESSION_COOKIE_NAME = "catalogs_session"

# =============================================================================
# TMDB
# =============================================================================
TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
TMDB_POSTER_SIZE = "w500"
TMDB_ORIGINAL_SIZE = "original"
TMDB_MEDIA_TYPE_MOVIE = "movie"
TMDB_MEDIA_TYPE_TV = "tv"
TMDB_TOP_CAST = 10

# Separator used to store actor/director names in a single column
PEOPLE_SEPARATOR = "#"

# =============================================================================
# Addon feed
# =============================================================================
ADDON_ID_PREFIX = "com.customcatalogs"
ADDON_VERSION = "1.0.0"
ADDON_DESCRIPTION = "Your personal custom catalogs"
ADDON_META_PREFIX = "tmdb"
ADDON_CATALOG_PREFIX = "cat_"
IMDB_TITLE_URL = "https://imdb.com/title"
STREMIO_SEARCH_URL = "stremio:///search"
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

# =============================================================================
# Backup
# =============================================================================
BACKUP_VERSION = "1.0"
BACKUP_FILENAME_PREFIX = "catalogs-backup"
