"""Slack slash-command relay that forwards thread content to ChatGPT."""
import logging
import importlib.metadata
import os

import dotenv

dotenv.load_dotenv()
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Log versions of the SDKs this service talks through
for _dist in ("slack_bolt", "slack_sdk", "openai", "fastapi", "pydantic"):
    try:
        _version = importlib.metadata.version(_dist)
    except importlib.metadata.PackageNotFoundError:
        _version = "unknown"
    logging.debug("%s version: %s", _dist, _version)
