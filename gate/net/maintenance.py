"""Periodic housekeeping for the admission controller."""

from __future__ import annotations

import asyncio
import logging

from gate.net.admission import AdmissionController

logger = logging.getLogger(__name__)


class MaintenanceSchedule:
    def __init__(self, controller: AdmissionController, interval: float = 60.0):
        self.controller = controller
        self.interval = float(interval)
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> int:
        return self.controller.maintenance(self.controller.clock())

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if not task:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.run_once()
            except Exception:
                logger.exception("maintenance pass failed")
