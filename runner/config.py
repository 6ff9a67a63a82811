import os
from dotenv import load_dotenv

load_dotenv()

FEED_URLS = {
    "avito": os.getenv("AVITO_FEED_URL", "").strip(),
    "cian": os.getenv("CIAN_FEED_URL", "").strip(),
    "domclick": os.getenv("DOMCLICK_FEED_URL", "").strip(),
    "realty": os.getenv("REALTY_FEED_URL", "").strip(),
}
if not any(FEED_URLS.values()):
    raise RuntimeError("No *_FEED_URL found in environment or .env")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
