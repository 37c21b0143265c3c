"""
Drawing BOM Extraction API
FastAPI service that turns PDF / DXF / DWG drawing text into material records.
"""
import os
import logging

from dotenv import load_dotenv

# Load .env before config reads the environment
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from drawbom import __version__, config
from drawbom.api.extraction_routes import router as extraction_router
from drawbom.services.logging_config import setup_logging
from drawbom.services.middleware import RequestTimingMiddleware

setup_logging(level=config.LOG_LEVEL, json_output=config.LOG_FORMAT != "text")
logger = logging.getLogger("drawbom-api")

app = FastAPI(
    title="Drawing BOM Extraction API",
    version=__version__,
    description="Material records (type, dimensions, quantity, confidence) from construction drawings",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestTimingMiddleware)

app.include_router(extraction_router)


@app.get("/health")
async def health_check():
    return {
        "status": "active",
        "version": __version__,
        "max_upload_mb": config.MAX_UPLOAD_MB,
        "oda_converter_configured": bool(config.ODA_CONVERTER_PATH),
    }


def run():
    import uvicorn
    uvicorn.run("drawbom.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=False)


if __name__ == "__main__":
    run()
