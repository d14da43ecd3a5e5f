import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from coogmusic.api.routes import reports
from coogmusic.db import connection as db_connection
from coogmusic.services.analytics import close_report_engine

app = FastAPI(
    title="CoogMusic Analytics API",
    description="Analytics reports for the CoogMusic streaming catalog",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("COOGMUSIC_CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reports.router, prefix="/api/analytics", tags=["analytics"])


@app.on_event("shutdown")
async def shutdown_connection_pools() -> None:
    """Close the report workers and database connection pool on shutdown."""
    close_report_engine()
    db_connection.close_pool()


@app.get("/")
async def root():
    return {"message": "CoogMusic Analytics API", "version": "1.0.0"}


@app.get("/health")
async def health():
    """Health check with connection pool stats."""
    try:
        return {
            "status": "healthy",
            "pools": {
                "catalog": db_connection.get_pool_stats(),
            },
        }
    except Exception as e:
        return {
            "status": "degraded",
            "error": str(e),
        }
