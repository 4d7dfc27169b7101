import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import os

from dotenv import load_dotenv

from sync_ical.network.client import fetch_feed
from sync_ical.normalizers.ical import parse_ical

load_dotenv()


def save_fixture(text: str, filename: str) -> None:
    os.makedirs("tests/fixtures", exist_ok=True)
    path = f"tests/fixtures/{filename}"
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    print(f"Saved {path} ({len(parse_ical(text))} events)")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Download a channel iCal feed as a test fixture.")
    parser.add_argument("url", help="Feed URL")
    parser.add_argument("filename", help="Fixture file name, e.g. airbnb_live.ics")
    args = parser.parse_args()

    save_fixture(fetch_feed(args.url), args.filename)
