import os
from dotenv import load_dotenv

load_dotenv()

# Access / refresh credentials
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "your-secret-key-here")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_TTL_MINUTES = int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", 15))
REFRESH_TOKEN_TTL_DAYS = int(os.getenv("REFRESH_TOKEN_TTL_DAYS", 14))

# Password reset
RESET_PASSWORD_TOKEN_TTL_MINUTES = int(os.getenv("RESET_PASSWORD_TOKEN_TTL_MINUTES", 30))
PASSWORD_RESET_URL_BASE = os.getenv("PASSWORD_RESET_URL_BASE", "gigmarket://reset-password")

# Gig pricing defaults (applied when a create request leaves them out)
DEFAULT_BUMP_EVERY_SECONDS = int(os.getenv("DEFAULT_BUMP_EVERY_SECONDS", 1800))
DEFAULT_BUMP_CENTS = int(os.getenv("DEFAULT_BUMP_CENTS", 100))
DEFAULT_STARS_BUMP_EVERY_SECONDS = int(os.getenv("DEFAULT_STARS_BUMP_EVERY_SECONDS", 1800))
DEFAULT_STARS_BUMP_AMOUNT = int(os.getenv("DEFAULT_STARS_BUMP_AMOUNT", 1))
DEFAULT_REPOST_BONUS_PER_REPOST = int(os.getenv("DEFAULT_REPOST_BONUS_PER_REPOST", 1))

# Pagination
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", 20))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", 100))
