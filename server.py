# FastAPI Server for the Gig Marketplace Core

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
import sys
from dotenv import load_dotenv

from database.config import init_db
from routers import (
    auth_router,
    profiles_router,
    companies_router,
    membership_requests_router,
    gigs_router,
    assignments_router,
    wallet_router,
    products_router,
    purchases_router,
    locations_router,
)

load_dotenv()

# Configure Logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Gig Marketplace API",
    description="Gigs with live pricing, company membership, and a stars/money ledger",
    version="1.0.0"
)


@app.on_event("startup")
def startup_event():
    # Create any missing tables; schema changes go through alembic
    init_db()
    logger.info("Gig Marketplace API started")


# CORS Setup - Allow all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Required when using "*"
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# ROUTERS (v1 API)
# ============================================================================
app.include_router(auth_router, prefix="/api/v1")
app.include_router(profiles_router, prefix="/api/v1")
app.include_router(companies_router, prefix="/api/v1")
app.include_router(membership_requests_router, prefix="/api/v1")
app.include_router(gigs_router, prefix="/api/v1")
app.include_router(assignments_router, prefix="/api/v1")
app.include_router(wallet_router, prefix="/api/v1")
app.include_router(products_router, prefix="/api/v1")
app.include_router(purchases_router, prefix="/api/v1")
app.include_router(locations_router, prefix="/api/v1")


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
