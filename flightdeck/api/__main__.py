"""
Run the API with uvicorn: python -m flightdeck.api
"""

import uvicorn

from flightdeck.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "flightdeck.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
