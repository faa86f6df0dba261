"""
main.py
========
Central entry point for the LeadQA application.

Run with:
    uvicorn main:app --reload
"""

import logging

from dotenv import load_dotenv

load_dotenv()  # Load .env before any module reads env vars

from leadqa import config  # noqa: E402

# Configure logging for the entire application
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Suppress SDK-internal HTTP/transport logs so only stage logs are shown.
for _sdk_logger_name in (
    "openai",
    "openai._base_client",
    "deepgram",
    "httpx",
    "httpcore",
    "urllib3",
):
    logging.getLogger(_sdk_logger_name).setLevel(logging.CRITICAL)

_missing = config.missing_keys()
if _missing:
    logging.getLogger("leadqa").warning("Missing configuration: %s", ", ".join(_missing))

from leadqa.api.upload import app  # noqa: F401, E402

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=config.HOST, port=config.PORT, reload=True)
