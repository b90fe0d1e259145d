"""Health service reporting process and host statistics."""

import os
import platform
import time
from typing import Any, Dict, Optional
import psutil
from ..services.chunk_assembler import ChunkAssembler
from ..utils.helpers import format_bytes
from ..utils.logger import get_logger

logger = get_logger(__name__)


class HealthService:
    """Collects CPU, memory and host stats for the health endpoint."""

    def __init__(self, assembler: Optional[ChunkAssembler] = None, cpu_interval: Optional[float] = 0.5):
        self.assembler = assembler
        self.cpu_interval = cpu_interval

    def get_system_stats(self) -> Dict[str, Any]:
        """
        Gather system stats.
        Raises psutil.Error (or OSError) if the host refuses to report them.
        """
        logger.debug("Gathering system stats")
        cpu_percent = psutil.cpu_percent(interval=self.cpu_interval)
        memory = psutil.virtual_memory()
        process_memory = psutil.Process(os.getpid()).memory_info()
        uptime = int(time.time() - psutil.boot_time())

        stats: Dict[str, Any] = {
            "ok": True,
            "system": {
                "cpu": {"usage": cpu_percent},
                "memory": {
                    "systemTotal": format_bytes(memory.total),
                    "processUsed": format_bytes(process_memory.rss),
                },
                "host": {
                    "os": platform.system().lower(),
                    "platform": platform.platform(),
                    "uptime": uptime,
                },
            },
        }
        if self.assembler is not None:
            stats["uploads"] = self.assembler.stats()
        return stats

    def check(self) -> tuple[int, Dict[str, Any]]:
        """Return (status code, body) for the health endpoint."""
        try:
            return 200, self.get_system_stats()
        except (psutil.Error, OSError) as e:
            logger.error("Failed to retrieve system stats", error=str(e))
            return 500, {"ok": False, "error": "Could not retrieve system stats"}
