from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, HTTPException

from segmenter.api.contracts import ExecuteCodeRequest
from segmenter.config import settings
from segmenter.sandbox import ExecutionOptions, PythonSandbox

SandboxGetter = Callable[[], PythonSandbox]


def build_execution_router(*, get_sandbox: SandboxGetter) -> APIRouter:
    router = APIRouter()

    @router.post("/execute")
    async def execute_code(payload: ExecuteCodeRequest) -> dict[str, object]:
        if len(payload.code) > settings.max_content_chars:
            raise HTTPException(status_code=413, detail="Code exceeds the maximum allowed size.")

        result = await get_sandbox().execute(
            payload.code,
            ExecutionOptions(
                timeout_ms=payload.timeout_ms,
                extra_packages=tuple(name.strip() for name in payload.extra_packages if name.strip()),
            ),
        )
        return result.to_dict()

    return router
