"""
EIA Analyst API server.
Run with: python main.py   (or: uvicorn main:app)
"""

import uvicorn

from eia_analyst.core.config import get_settings
from eia_analyst.factory import create_app

app = create_app()


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.env == "development",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
