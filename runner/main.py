import logging
from typing import Sequence

import requests

from runner.config import FEED_URLS, LOG_LEVEL
from placements.errors import FeedError
from placements.feeds.avito import AvitoFeed
from placements.feeds.base import Feed
from placements.feeds.cian import CianFeed
from placements.feeds.domclick import DomClickFeed
from placements.feeds.realty import RealtyFeed

FEED_TYPES = {
    "avito": AvitoFeed,
    "cian": CianFeed,
    "domclick": DomClickFeed,
    "realty": RealtyFeed,
}


def build_feeds(urls: dict[str, str], session: requests.Session) -> list[Feed]:
    return [FEED_TYPES[name](url, session=session) for name, url in urls.items() if url]


def run(feeds: Sequence[Feed]) -> int:
    failed = 0
    for feed in feeds:
        try:
            feed.get()
        except FeedError as e:
            print(f"[{feed.name}] fetch error: {e}")
            failed += 1
            continue

        problems = feed.check()
        updated = feed.last_modified.isoformat() if feed.last_modified else "unknown"
        print(f"[{feed.name}] {len(problems)} problem(s), last modified: {updated}")
        for msg in problems:
            print(f"  {msg}")
    return 1 if failed else 0


def main() -> int:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # 1) Register feeds here (urls come from .env)
    feeds = build_feeds(FEED_URLS, requests.Session())

    # 2) Fetch + check each one
    return run(feeds)


if __name__ == "__main__":
    raise SystemExit(main())
