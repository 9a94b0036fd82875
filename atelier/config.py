"""
Central configuration module for the Atelier backend.

Loads environment variables and defines gallery constants, pagination,
image limits, pricing defaults, genre lists, notification addresses and
the LLM prompt used to draft painting descriptions.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")
PAINTINGS_TABLE = os.getenv("PAINTINGS_TABLE", "paintings")

CF_ACCOUNT_ID = os.getenv("CF_ACCOUNT_ID", "")
R2_ACCESS_KEY = os.getenv("R2_ACCESS_KEY", "")
R2_SECRET_KEY = os.getenv("R2_SECRET_KEY", "")
R2_BUCKET = os.getenv("R2_BUCKET", "atelier-paintings")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")

SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY", "")
SENDGRID_API_URL = os.getenv("SENDGRID_API_URL", "https://api.sendgrid.com/v3/mail/send")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "studio@example.com")
FROM_EMAIL = os.getenv("FROM_EMAIL", "noreply@example.com")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Gallery & pagination
# ---------------------------------------------------------------------------
PAINTINGS_PER_PAGE = 12

# Refresh interval for the painting detail view (seconds). Also the
# lifetime of cached public views between explicit invalidations.
DETAIL_REFRESH_SECONDS = 30

GENRES: list[str] = [
    "Abstract",
    "Landscape",
    "Portrait",
    "Still Life",
    "Wildlife",
    "Uncategorized",
]

# Matches records that have no genre at all.
UNCATEGORIZED_GENRE = "Uncategorized"

# Filter value meaning "no constraint".
FILTER_ALL = "All"

# Views that list paintings; every write invalidates these.
LISTING_VIEWS: tuple[str, ...] = ("/", "/gallery", "/shop", "/admin")

# Detail pages link to their neighbours in the collection, so every write
# invalidates all of them too.
DETAIL_VIEW_PREFIX = "/painting/"

# Upper bound on cached public payloads (one per distinct path + query).
VIEW_CACHE_MAX_ENTRIES = 256


def detail_view(painting_id: str) -> str:
    """Cache key / route of a single painting's detail page."""
    return f"{DETAIL_VIEW_PREFIX}{painting_id}"


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------
PLACEHOLDER_IMAGE = "/placeholder.svg"
MAX_IMAGE_SIZE_BYTES = 5 * 1024 * 1024  # 5 MB
MAX_IMAGE_VERSIONS = 3
MAX_STORED_IMAGE_SIDE = 2048
ALLOWED_IMAGE_TYPES: list[str] = ["image/jpeg", "image/png", "image/webp"]
IMAGE_FOLDER = "paintings"

# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------
DEFAULT_DIMENSION_UNIT = "inches"
FALLBACK_ASPECT_RATIO = 0.75  # 3:4
FALLBACK_SIDE = 10.0
RELATIVE_SCALE_BASE = 10.0
RELATIVE_SCALE_BOUNDS: tuple[float, float] = (0.5, 2.5)

# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------
ENQUIRE_PRICE = "Enquire"
CURRENCY_SYMBOL = "£"

# ---------------------------------------------------------------------------
# Admin submission
# ---------------------------------------------------------------------------
ADMIN_HOME = "/admin"
LOGIN_VIEW = "/admin/login"
SESSION_COOKIE = "atelier_session"

# Simulated progress for a single-file upload where the storage provider
# reports no intermediate events: (percent, status label).
SIMULATED_UPLOAD_STEPS: list[tuple[int, str]] = [
    (10, "Preparing upload..."),
    (20, "Starting upload..."),
    (40, "Uploading image..."),
    (60, "Processing image..."),
    (80, "Finalizing upload..."),
]

# ---------------------------------------------------------------------------
# LLM Prompts
# ---------------------------------------------------------------------------

GEMINI_MODEL = "gemini-2.5-flash"

DESCRIPTION_PROMPT = """\
You are writing gallery copy for an independent painter's online portfolio. \
You will receive a photograph of one finished painting together with the \
artist's notes.

Write a description of the painting for its detail page.

## Rules

1. Two to four sentences, present tense, third person ("This piece ...").
2. Describe the subject, palette, light and mood that are actually visible.
3. Mention the medium and size naturally, once.
4. Work the artist's notes in if they are provided; never contradict them.
5. No prices, no calls to action, no hashtags, no markdown.

## Painting facts

Medium: {medium}
Dimensions: {dimensions}
Artist notes: {notes}

Return ONLY the description text.
"""

DESCRIPTION_FALLBACK_TAIL = (
    "invites viewers to explore its rich details and emotional depth. "
    "The careful composition and thoughtful use of color create a compelling "
    "visual narrative that resonates with the viewer."
)
