"""
Storefront API - Main FastAPI Application

Single entry point for the storefront's Python API routes on Vercel.
"""
import os
import sys
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Make the storefront package importable when deployed as a Vercel function
_base_path = Path(__file__).parent.parent
if str(_base_path) not in sys.path:
    sys.path.insert(0, str(_base_path))

from storefront.routers import inventory_router  # noqa: E402

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

app = FastAPI(
    title="Storefront API",
    description="Inventory service for the storefront cart",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(inventory_router)


# ==================== HEALTH CHECK ====================

@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "storefront"}
