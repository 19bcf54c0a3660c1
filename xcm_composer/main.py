"""FastAPI application for composing cross-chain transfer programs."""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from xcm_composer.routes import accounts, programs

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Load environment variables
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events."""
    logger.info("Starting XCM Composer Service...")
    logger.info(f"Server running on port {os.getenv('PORT', '8080')}")
    logger.info(f"XCM_EXECUTOR_URL: {os.getenv('XCM_EXECUTOR_URL', '(default)')}")
    logger.info(f"XCM_FEE_DIVISOR: {programs.default_fee_divisor()}")
    logger.info("Ready for requests")
    yield
    logger.info("Shutting down XCM Composer Service...")


app = FastAPI(
    title="XCM Composer",
    description="Builds multi-hop cross-chain transfer programs",
    version="0.1.0",
    lifespan=lifespan,
)

cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(programs.router)
app.include_router(accounts.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
