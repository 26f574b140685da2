import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portal.core.config import settings
from portal.modules.attendance.router import router as attendance_router
from portal.modules.reports.router import router as reports_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="School Portal Attendance",
    description="Daily attendance calendar, edit window and attendance reports",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health check route
@app.get("/health")
def health_check():
    """Check if the service and database connection are healthy"""
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        from portal.db.supabase import get_supabase
        get_supabase().table(settings.ATTENDANCE_TABLE).select("id").limit(1).execute()
        return {
            "status": "healthy",
            "database": "connected",
            "timestamp": timestamp
        }
    except Exception as e:
        logger.warning("Health check failed: %s", str(e))
        return {
            "status": "unhealthy",
            "database": f"error: {str(e)}",
            "timestamp": timestamp
        }

# Include routers
app.include_router(attendance_router, prefix="/attendance", tags=["Attendance"])
app.include_router(reports_router, prefix="/reports", tags=["Reports"])
