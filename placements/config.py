import os

HTTP_TIMEOUT = float(os.getenv("PLACEMENTS_HTTP_TIMEOUT", "200"))

USER_AGENT = os.getenv(
    "PLACEMENTS_USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/19.0 Safari/605.1.15",
)

HEADERS = {
    "Accept": "application/xml, text/xml, */*",
    "User-Agent": USER_AGENT,
}
