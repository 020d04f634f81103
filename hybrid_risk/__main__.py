"""
Run the API with uvicorn on the configured host and port.

Usage:
    python -m hybrid_risk
"""

import uvicorn

from hybrid_risk.core.config import Settings, settings


def run(config: Settings = settings) -> None:
    uvicorn.run(
        "hybrid_risk.main:app",
        host=config.api_host,
        port=config.api_port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    run()
