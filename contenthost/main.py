# CONTENTHOST BACKEND

# COMPONENT: FASTAPI APPLICATION ENTRY POINT
# REQUIREMENTS SATISFIED:
#   - API initialization and routing
#   - Middleware configuration (logging + CORS)
#   - AWS Lambda compatibility via Mangum
#   - Baseline API availability and preflight handling
"""
contenthost/main.py

Application entry point for the ContentHost backend. This module assembles
the FastAPI application, registers middleware, mounts the API routers and
exposes the AWS Lambda handler.

Execution Order:
    1. Environment variables are loaded from .env
    2. The "contenthost" logger tree is configured
    3. FastAPI app is created
    4. Request logging middleware is attached
    5. CORS middleware is configured (embeds are served to any origin)
    6. API routers are mounted under the /api prefix
    7. A global OPTIONS handler is installed for CORS preflight
    8. The Mangum handler is created for AWS Lambda deployment

Deployment Context:
    - Runs locally under uvicorn (uvicorn contenthost.main:app) or in Lambda.
    - B2 and admin settings come from the environment; storage is resolved
      lazily on first use so the app starts even when they are missing.
"""
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Response
from starlette.middleware.cors import CORSMiddleware
from mangum import Mangum

from contenthost.api.middleware.log_requests import RequestLogger
from contenthost.api.routers.auth import router as auth_router
from contenthost.api.routers.files import router as files_router
from contenthost.utils.logging import setup_logger

setup_logger()

# -------------------------------------------------------------
# Constants
# -------------------------------------------------------------
ALLOWED_METHODS = "GET,POST,PUT,DELETE,OPTIONS"
ALLOWED_HEADERS = "Content-Type,Authorization"

# -------------------------------------------------------------
# App + middleware
# -------------------------------------------------------------
app = FastAPI(title="ContentHost API")

app.add_middleware(RequestLogger)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------------------------------------------
# Routers
# -------------------------------------------------------------
app.include_router(auth_router, prefix="/api")
app.include_router(files_router, prefix="/api")


# -------------------------------------------------------------
# Global preflight handler
# -------------------------------------------------------------
@app.options("/{path:path}")
async def preflight_handler(path: str):
    return Response(
        status_code=204,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": ALLOWED_METHODS,
            "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        },
    )


# -------------------------------------------------------------
# Lambda handler
# -------------------------------------------------------------
handler = Mangum(app)
