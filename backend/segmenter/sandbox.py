"""Subprocess-backed Python sandbox for executable code segments."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import json
import logging
import os
from pathlib import Path
import tempfile
import time
from typing import Iterable

logger = logging.getLogger("segmenter.sandbox")

_PROBE_TIMEOUT_SECONDS = 15.0
_PROBE_SCRIPT = "import sys; print(sys.version.split()[0])"


class SandboxUnavailableError(RuntimeError):
    """Raised when the sandbox interpreter cannot be started."""


@dataclass(frozen=True)
class ExecutionOptions:
    timeout_ms: int | None = None
    extra_packages: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExecutionResult:
    success: bool
    stdout: str
    stderr: str | None
    return_value_text: str | None = None
    plot_image_base64: str | None = None
    elapsed_ms: int = 0

    @classmethod
    def failure(cls, message: str, *, stdout: str = "", elapsed_ms: int = 0) -> "ExecutionResult":
        return cls(success=False, stdout=stdout, stderr=message, elapsed_ms=elapsed_ms)

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "return_value_text": self.return_value_text,
            "plot_image_base64": self.plot_image_base64,
            "elapsed_ms": self.elapsed_ms,
        }


@dataclass(frozen=True)
class SandboxRuntime:
    python_path: str
    python_version: str
    preload_packages: tuple[str, ...] = field(default_factory=tuple)


class PythonSandbox:
    """Lazily started interpreter handle shared by every execution request.

    ``initialize`` runs at most once at a time: concurrent callers await the same
    pending probe, a successful runtime is cached, and a failed probe is
    forgotten so the next call retries.
    """

    def __init__(
        self,
        *,
        python_path: str,
        default_timeout_ms: int = 30_000,
        max_timeout_ms: int = 120_000,
        preload_packages: Iterable[str] = (),
    ) -> None:
        self._python_path = python_path
        self._default_timeout_ms = default_timeout_ms
        self._max_timeout_ms = max(max_timeout_ms, 1)
        self._preload_packages = tuple(preload_packages)
        self._runtime: SandboxRuntime | None = None
        self._init_future: asyncio.Future[SandboxRuntime] | None = None

    @property
    def runtime(self) -> SandboxRuntime | None:
        return self._runtime

    @property
    def is_ready(self) -> bool:
        return self._runtime is not None

    async def initialize(self) -> SandboxRuntime:
        if self._runtime is not None:
            return self._runtime

        if self._init_future is None:
            self._init_future = asyncio.ensure_future(self._probe_runtime())
        future = self._init_future
        try:
            runtime = await asyncio.shield(future)
        except Exception:
            if self._init_future is future:
                self._init_future = None
            raise

        self._runtime = runtime
        self._init_future = None
        return runtime

    async def _probe_runtime(self) -> SandboxRuntime:
        if not self._python_path:
            raise SandboxUnavailableError("Python path not configured")

        try:
            process = await asyncio.create_subprocess_exec(
                self._python_path,
                "-c",
                _PROBE_SCRIPT,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise SandboxUnavailableError(f"Python interpreter not available: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=_PROBE_TIMEOUT_SECONDS)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise SandboxUnavailableError("Python interpreter probe timed out") from exc

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip() or f"exit code {process.returncode}"
            raise SandboxUnavailableError(f"Python interpreter probe failed: {detail}")

        runtime = SandboxRuntime(
            python_path=self._python_path,
            python_version=stdout.decode("utf-8", errors="replace").strip(),
            preload_packages=self._preload_packages,
        )
        logger.info(
            "sandbox_initialized",
            extra={
                "event": "sandbox_initialized",
                "python_path": runtime.python_path,
                "python_version": runtime.python_version,
            },
        )
        return runtime

    def resolve_timeout_ms(self, requested: int | None) -> int:
        timeout_ms = requested if requested is not None else self._default_timeout_ms
        return max(1, min(int(timeout_ms), self._max_timeout_ms))

    async def execute(self, code: str, options: ExecutionOptions | None = None) -> ExecutionResult:
        options = options or ExecutionOptions()
        try:
            runtime = await self.initialize()
        except SandboxUnavailableError as exc:
            logger.warning("sandbox_unavailable", extra={"event": "sandbox_unavailable", "error": str(exc)})
            return ExecutionResult.failure(str(exc))

        timeout_ms = self.resolve_timeout_ms(options.timeout_ms)
        packages = [*runtime.preload_packages, *[name for name in options.extra_packages if name]]

        with tempfile.TemporaryDirectory(prefix="segmenter-sandbox-") as temp_dir:
            temp_root = Path(temp_dir)
            source_path = temp_root / "source.py"
            report_path = temp_root / "report.json"
            runner_path = temp_root / "runner.py"

            source_path.write_text(code, encoding="utf-8")
            runner_path.write_text(_build_runner_script(source_path, report_path, packages), encoding="utf-8")

            started = time.perf_counter()
            try:
                process = await asyncio.create_subprocess_exec(
                    runtime.python_path,
                    runner_path.as_posix(),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=temp_dir,
                    env={**os.environ, "MPLBACKEND": "Agg"},
                )
            except OSError as exc:
                return ExecutionResult.failure(f"Failed to start interpreter: {exc}")

            try:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(
                    process.communicate(), timeout=timeout_ms / 1000
                )
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
                logger.warning(
                    "sandbox_execution_timed_out",
                    extra={"event": "sandbox_execution_timed_out", "timeout_ms": timeout_ms},
                )
                return ExecutionResult.failure(
                    f"Execution timed out ({timeout_ms / 1000:g}s limit)",
                    elapsed_ms=timeout_ms,
                )

            elapsed_ms = round((time.perf_counter() - started) * 1000)
            report = _read_report(report_path)

        stdout = stdout_bytes.decode("utf-8", errors="replace").strip()
        stderr = stderr_bytes.decode("utf-8", errors="replace").strip() or None
        success = process.returncode == 0 and bool(report.get("ok", True))
        if not success and stderr is None:
            stderr = str(report.get("error") or f"Execution failed with exit code {process.returncode}")

        logger.info(
            "sandbox_execution_completed",
            extra={
                "event": "sandbox_execution_completed",
                "success": success,
                "exit_code": process.returncode,
                "duration_ms": elapsed_ms,
                "packages": packages,
            },
        )
        return ExecutionResult(
            success=success,
            stdout=stdout,
            stderr=stderr,
            return_value_text=report.get("result") if success else None,
            plot_image_base64=report.get("plot") if success else None,
            elapsed_ms=elapsed_ms,
        )


def _read_report(report_path: Path) -> dict[str, object]:
    if not report_path.exists():
        return {}
    try:
        payload = json.loads(report_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _build_runner_script(source_path: Path, report_path: Path, packages: list[str]) -> str:
    return (
        "import ast, base64, importlib, io, json, sys, traceback\n"
        f"_source = {source_path.as_posix()!r}\n"
        f"_report = {report_path.as_posix()!r}\n"
        f"_packages = {list(packages)!r}\n"
        "def _write_report(payload):\n"
        "    with open(_report, 'w', encoding='utf-8') as _file:\n"
        "        json.dump(payload, _file)\n"
        "def _capture_plot():\n"
        "    pyplot = sys.modules.get('matplotlib.pyplot')\n"
        "    if pyplot is None or not pyplot.get_fignums():\n"
        "        return None\n"
        "    buffer = io.BytesIO()\n"
        "    pyplot.savefig(buffer, format='png', dpi=100, bbox_inches='tight', facecolor='white')\n"
        "    pyplot.close('all')\n"
        "    return base64.b64encode(buffer.getvalue()).decode('ascii')\n"
        "for _name in _packages:\n"
        "    try:\n"
        "        importlib.import_module(_name)\n"
        "    except ImportError as _exc:\n"
        "        print(f'warning: failed to load package {_name}: {_exc}', file=sys.stderr)\n"
        "with open(_source, 'r', encoding='utf-8') as _file:\n"
        "    _code = _file.read()\n"
        "_globals = {'__name__': '__main__'}\n"
        "try:\n"
        "    _tree = ast.parse(_code, '<sandbox>')\n"
        "    _tail = None\n"
        "    if _tree.body and isinstance(_tree.body[-1], ast.Expr):\n"
        "        _tail = ast.Expression(_tree.body.pop().value)\n"
        "    exec(compile(_tree, '<sandbox>', 'exec'), _globals)\n"
        "    _value = eval(compile(_tail, '<sandbox>', 'eval'), _globals) if _tail is not None else None\n"
        "except Exception as _exc:\n"
        "    traceback.print_exc()\n"
        "    _write_report({'ok': False, 'error': ''.join(traceback.format_exception_only(type(_exc), _exc)).strip()})\n"
        "    sys.exit(1)\n"
        "try:\n"
        "    _plot = _capture_plot()\n"
        "except Exception as _exc:\n"
        "    print(f'warning: failed to capture plot: {_exc}', file=sys.stderr)\n"
        "    _plot = None\n"
        "_write_report({'ok': True, 'result': None if _value is None else repr(_value), 'plot': _plot})\n"
    )
