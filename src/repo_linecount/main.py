from __future__ import annotations
import logging
import uvicorn
from repo_linecount.infrastructure.config import get_settings

def main() -> None:
    """Start the uvicorn ASGI server."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    # httpx logs every request at INFO; one walk issues one per file.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    uvicorn.run(
        "repo_linecount.interface.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
