"""Run the API with uvicorn: ``python -m chathub``."""

import uvicorn

from chathub.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "chathub.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload,
    )
