import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

from cloudimega.api.api_v1.api import api_router
from cloudimega.api.api_v1.endpoints import public
from cloudimega.core.config import settings
from cloudimega.core.errors import InvalidArgument, ShareError
from cloudimega.db.init_db import create_tables

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)
# Share links handed to visitors point here
app.include_router(public.router, prefix="/s", tags=["public"])

@app.get("/health")
def health_check():
    return {"status": "ok"}

@app.exception_handler(ShareError)
async def share_error_handler(request: Request, exc: ShareError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "reason": exc.reason},
    )

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error", "reason": "internal"},
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Validation Error on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors()), "reason": InvalidArgument.reason},
    )

@app.on_event("startup")
def startup_event():
    create_tables()
    logger.debug("Registered Routes: %s", [route.path for route in app.routes if hasattr(route, "path")])

if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8080)
