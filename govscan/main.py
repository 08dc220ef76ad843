"""
govscan FastAPI Application — Compliance and AI-governance scanner.

  POST   /scan             → scan a local path or GitHub repository
  GET    /scan/{id}        → stored report of an earlier scan
  POST   /fix/apply        → apply an LLM-authored fix to file content
  GET    /policies         → stored policies (POST ingests, DELETE /{id} removes)
  GET    /policies/presets → built-in rule packs (POST /{slug} installs)
  GET    /agent/status     → policy-watching agent status
  POST   /agent/start, /agent/stop; GET|POST|DELETE /agent/sources
  GET    /audit            → recent audit entries
  GET    /health           → {"status": "ok", ...}
"""

from __future__ import annotations

import logging

from dotenv import load_dotenv
load_dotenv()

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from govscan.api.routes.agent import router as agent_router
from govscan.api.routes.audit import router as audit_router
from govscan.api.routes.fix import router as fix_router
from govscan.api.routes.health import router as health_router
from govscan.api.routes.policies import router as policies_router
from govscan.api.routes.scan import router as scan_router
from govscan.config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("govscan")

app = FastAPI(
    title="govscan",
    description="Compliance policy and AI/ML governance scanner",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(scan_router)
app.include_router(fix_router)
app.include_router(policies_router)
app.include_router(agent_router)
app.include_router(audit_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    body = await request.body()
    logger.error(f"Validation error. Raw body: {body.decode('utf-8')[:500]} | Errors: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": exc.errors()})


def serve() -> None:
    uvicorn.run("govscan.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    serve()
