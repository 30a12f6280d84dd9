"""
Health, readiness and metrics endpoints.

`/health` answers `{"status": "ok"}` with the service message; readiness
runs the registered dependency checks plus a memory check and answers 503
when any of them fails.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from typing import Any, Callable, Dict, Optional
import os
import time
from datetime import datetime, timezone
from enum import Enum
import psutil
import logging

logger = logging.getLogger(__name__)

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

class HealthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"

class ServiceHealth:
    """
    Health management for a service.

    Dependency checks are plain callables returning truthy when the
    dependency answers; a raised exception counts as a failure.
    """

    def __init__(
        self,
        service_name: str,
        version: str = "1.0.0",
        message: str = "",
        checks: Optional[Dict[str, Callable[[], Any]]] = None,
    ):
        self.service_name = service_name
        self.version = version
        self.message = message
        self.checks = dict(checks or {})
        self.start_time = time.time()
        self.checks_performed = 0
        self.last_check_time = None

    def create_health_router(self, prefix: str = "") -> APIRouter:
        router = APIRouter(prefix=prefix, tags=["health"])

        @router.get("/health", status_code=status.HTTP_200_OK)
        async def health_check() -> Dict[str, Any]:
            return {
                "status": "ok",
                "message": self.message,
                "service": self.service_name,
                "version": self.version,
                "timestamp": _now_iso(),
            }

        @router.get("/health/live", status_code=status.HTTP_200_OK)
        async def liveness() -> Dict[str, Any]:
            return {"status": "alive"}

        @router.get("/health/ready")
        async def readiness() -> JSONResponse:
            checks = self.perform_readiness_checks()
            overall_status = self._calculate_overall_status(checks)
            status_code = (
                status.HTTP_200_OK
                if overall_status != HealthStatus.FAIL
                else status.HTTP_503_SERVICE_UNAVAILABLE
            )
            return JSONResponse(
                status_code=status_code,
                content={
                    "status": overall_status.value,
                    "version": self.version,
                    "releaseId": os.getenv("RELEASE_ID", "unknown"),
                    "checks": checks,
                    "serviceId": self.service_name,
                    "timestamp": _now_iso(),
                },
            )

        @router.get("/metrics")
        async def metrics() -> Dict[str, Any]:
            process = psutil.Process()
            memory = process.memory_info()
            return {
                "service": self.service_name,
                "version": self.version,
                "uptime_seconds": time.time() - self.start_time,
                "checks_performed": self.checks_performed,
                "last_check_time": self.last_check_time,
                "timestamp": _now_iso(),
                "system": {
                    "memory_rss_bytes": memory.rss,
                    "memory_vms_bytes": memory.vms,
                    "cpu_percent": process.cpu_percent(),
                    "num_threads": process.num_threads(),
                },
            }

        return router

    def perform_readiness_checks(self) -> Dict[str, Dict[str, Any]]:
        self.checks_performed += 1
        self.last_check_time = time.time()

        results = {name: self._run_check(check) for name, check in self.checks.items()}
        results["system:memory"] = self._check_memory()
        return results

    def _run_check(self, check: Callable[[], Any]) -> Dict[str, Any]:
        start_time = time.time()
        try:
            ok = bool(check())
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return {"status": HealthStatus.FAIL.value, "output": str(e), "time": _now_iso()}

        response_time = (time.time() - start_time) * 1000
        return {
            "status": (HealthStatus.PASS if ok else HealthStatus.FAIL).value,
            "observedValue": f"{response_time:.2f}",
            "observedUnit": "ms",
            "time": _now_iso(),
        }

    def _check_memory(self) -> Dict[str, Any]:
        memory = psutil.virtual_memory()
        available_mb = memory.available / (1024 ** 2)

        if available_mb < 100:
            status_val = HealthStatus.FAIL
        elif available_mb < 500:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS

        return {
            "status": status_val.value,
            "componentType": "system",
            "observedValue": f"{available_mb:.2f}",
            "observedUnit": "MB",
            "time": _now_iso(),
        }

    def _calculate_overall_status(self, checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
        statuses = [check.get("status", HealthStatus.PASS.value) for check in checks.values()]

        if HealthStatus.FAIL.value in statuses:
            return HealthStatus.FAIL
        elif HealthStatus.WARN.value in statuses:
            return HealthStatus.WARN
        return HealthStatus.PASS
