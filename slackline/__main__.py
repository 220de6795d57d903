"""Run the bridge: ``python -m slackline``."""

import uvicorn

from slackline.config import CONFIG
from slackline.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging(CONFIG["log_level"])
    uvicorn.run(
        "slackline.adapters.web.server:create_app",
        factory=True,
        host="0.0.0.0",
        port=CONFIG["port"],
        log_level="info",
    )
