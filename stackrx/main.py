"""
StackRx API Server Entry Point

    uvicorn stackrx.main:app --host 0.0.0.0 --port $PORT
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stackrx import __version__
from stackrx.engine.endpoints import router as prescriptions_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="StackRx API",
        description="Deterministic supplement prescription engine",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("STACKRX_CORS_ORIGINS", "*").split(","),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(prescriptions_router)

    @app.get("/")
    def root():
        return {"service": "stackrx", "version": __version__}

    logger.info(f"StackRx API {__version__} ready")
    return app


app = create_app()


# For local development
if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=os.getenv("STACKRX_LOG_LEVEL", "INFO"))
    uvicorn.run("stackrx.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
