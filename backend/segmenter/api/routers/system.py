from __future__ import annotations

from typing import Callable

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from segmenter.config import settings
from segmenter.sandbox import PythonSandbox, SandboxUnavailableError

SandboxGetter = Callable[[], PythonSandbox]


def build_system_router(*, get_sandbox: SandboxGetter) -> APIRouter:
    router = APIRouter()

    @router.get("/")
    def root() -> dict[str, str]:
        return {"service": "segmenter-backend", "status": "running"}

    @router.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "environment": settings.app_env}

    @router.get("/ready", response_model=None)
    async def ready() -> JSONResponse:
        payload: dict[str, object] = {
            "status": "ready",
            "environment": settings.app_env,
            "checks": {},
        }

        try:
            runtime = await get_sandbox().initialize()
        except SandboxUnavailableError as exc:
            payload["status"] = "not_ready"
            payload["checks"]["sandbox"] = {"ok": False, "error": str(exc)}
            return JSONResponse(status_code=503, content=payload)

        payload["checks"]["sandbox"] = {
            "ok": True,
            "python_version": runtime.python_version,
        }
        return JSONResponse(status_code=200, content=payload)

    return router
