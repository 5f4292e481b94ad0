import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from starlette.exceptions import HTTPException as StarletteHTTPException

from case_portal.api import (
    auth, students, staff, parents, attendance, academic, events, notifications,
    bulk_operations, dashboard, timetables, notes, portals, database,
)
from case_portal.config import settings
from case_portal.database import engine
from case_portal.models import Base
from case_portal.middleware.authentication import PortalGuardMiddleware
from case_portal.middleware.logging import setup_logging, add_logging_middleware

# Initialize FastAPI app
app = FastAPI(
    title="C.A.S.E Portal API",
    description="API for the C.A.S.E academic portal: staff, student and parent management, "
                "attendance, internal marks, events, notifications and timetables",
    version="1.0.0",
    docs_url=None,
)

# Middleware runs outermost-last: CORS wraps request logging, which wraps the portal guard
app.add_middleware(PortalGuardMiddleware)
add_logging_middleware(app)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

def error_response(status_code: int, message, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, exc.detail, getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return error_response(status.HTTP_400_BAD_REQUEST, "; ".join(messages) or "Invalid request")

# Custom exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
    )

# Create database tables
@app.on_event("startup")
async def startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created or verified")

# Include routers
app.include_router(auth.router, prefix="/api", tags=["Authentication"])
app.include_router(students.router, prefix="/api", tags=["Students"])
app.include_router(staff.router, prefix="/api", tags=["Staff"])
app.include_router(parents.router, prefix="/api", tags=["Parents"])
app.include_router(attendance.router, prefix="/api", tags=["Attendance"])
app.include_router(academic.router, prefix="/api", tags=["Academic"])
app.include_router(events.router, prefix="/api", tags=["Events"])
app.include_router(notifications.router, prefix="/api", tags=["Notifications"])
app.include_router(bulk_operations.router, prefix="/api", tags=["Bulk Operations"])
app.include_router(dashboard.router, prefix="/api", tags=["Dashboard"])
app.include_router(timetables.router, prefix="/api", tags=["Timetables"])
app.include_router(notes.router, prefix="/api", tags=["Notes and Feedback"])
app.include_router(portals.router, prefix="/api", tags=["Portals"])
app.include_router(database.router, prefix="/api", tags=["Database"])

# Custom OpenAPI schema for documentation
@app.get("/api/docs", include_in_schema=False)
async def custom_swagger_ui_html():
    return get_swagger_ui_html(
        openapi_url="/api/openapi.json",
        title="C.A.S.E Portal API Documentation",
        swagger_ui_parameters={"defaultModelsExpandDepth": -1},
    )

@app.get("/api/openapi.json", include_in_schema=False)
async def get_openapi_endpoint():
    return get_openapi(
        title="C.A.S.E Portal API",
        version="1.0.0",
        description="API for the C.A.S.E academic portal",
        routes=app.routes,
    )

@app.get("/", tags=["Root"])
async def root():
    return {"message": "Welcome to the C.A.S.E Portal API. Visit /api/docs for documentation."}

# Run the server
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("case_portal.main:app", host="0.0.0.0", port=8000, reload=True)
