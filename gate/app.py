"""HTTP entrypoint: admission-gated text analysis."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import aiohttp
from aiohttp import web

from gate import protocol
from gate.analysis.groq import GroqProvider
from gate.analysis.mock import MockProvider
from gate.analysis.provider import Provider, ProviderError
from gate.config import GateConfig
from gate.net.maintenance import MaintenanceSchedule
from gate.storage.memory import AnalysisCache, hash_text

logger = logging.getLogger(__name__)

RATE_LIMITED = "Rate limit exceeded. Please wait before trying again."
INVALID_RESPONSE = "Invalid response from analysis provider"


def make_provider(config: GateConfig) -> Provider:
    if config.provider == "mock":
        return MockProvider(delay_sec=config.mock_delay_sec)
    if config.provider == "groq":
        return GroqProvider(api_key=config.api_key, model=config.model)
    raise ValueError(f"Unknown provider: {config.provider}")


class AnalysisService:
    def __init__(
        self,
        config: GateConfig,
        provider: Provider | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.start_time = time.time()

        self.admission = config.admission_controller(clock=clock)
        self.maintenance = MaintenanceSchedule(self.admission, interval=config.maintenance_interval)
        self.cache = AnalysisCache(capacity=config.cache_size)
        self.provider = provider or make_provider(config)

    async def start(self) -> None:
        await self.maintenance.start()
        logger.info("analysis gate started (provider=%s)", self.provider.name)

    async def stop(self) -> None:
        await self.maintenance.stop()
        await self.provider.close()

    async def analyze(self, req: protocol.AnalyzeRequest) -> tuple[int, dict[str, Any]]:
        if not self.admission.allow(req.client_id):
            return 429, protocol.fail(RATE_LIMITED)

        key = hash_text(req.text)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("returning cached result for hash %s", key)
            return 200, protocol.ok(cached, cached=True)

        if self.config.dev_mode:
            logger.info("analysis request: client=%s text=%r", req.client_id, req.text[:100])

        started = time.perf_counter()
        try:
            result = await self.provider.analyze_text(req.text)
        except (ProviderError, aiohttp.ClientError) as e:
            logger.error("analysis error: %s", e)
            return 502, protocol.fail(str(e) or "Analysis failed")
        latency = int((time.perf_counter() - started) * 1000)

        if not protocol.is_valid_analysis_response(result):
            logger.error("invalid analysis response: %r", result)
            return 502, protocol.fail(INVALID_RESPONSE)

        if self.config.dev_mode:
            logger.info("analysis result: latency=%dms suggestions=%d", latency, len(result["suggestions"]))

        self.cache.put(key, result)
        return 200, protocol.ok(result, latency=latency, cached=False)

    def version_payload(self) -> dict[str, Any]:
        return {
            "serviceVersion": self.config.service_version,
            "provider": self.provider.name,
        }


def _cors_headers(config: GateConfig, origin: str | None) -> dict[str, str]:
    if not origin:
        return {}
    if config.cors_allow_all or origin in config.cors_allowed_origins:
        return {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}
    return {}


@web.middleware
async def cors_middleware(request: web.Request, handler):
    origin = request.headers.get("Origin")
    if request.method == "OPTIONS":
        headers = {
            **_cors_headers(request.app["config"], origin),
            "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type,X-Client-Id",
            "Access-Control-Max-Age": "86400",
        }
        return web.Response(status=204, headers=headers)

    resp = await handler(request)
    resp.headers.update(_cors_headers(request.app["config"], origin))
    return resp


def create_app(config: GateConfig, svc: AnalysisService | None = None) -> web.Application:
    app = web.Application(middlewares=[cors_middleware])
    svc = svc or AnalysisService(config)

    app["config"] = config
    app["svc"] = svc

    async def on_startup(_: web.Application):
        await svc.start()

    async def on_cleanup(_: web.Application):
        await svc.stop()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)

    async def root(_: web.Request):
        return web.json_response(
            {
                "ok": True,
                "service": "aurora-gate",
                **svc.version_payload(),
                "endpoints": {
                    "health": "/health",
                    "version": "/version",
                    "analyze": "/analyze",
                    "clearCache": "/cache/clear",
                },
            }
        )

    async def health(_: web.Request):
        return web.json_response(
            {
                "ok": True,
                "uptimeSec": time.time() - svc.start_time,
                "admission": svc.admission.snapshot(),
                "cacheSize": len(svc.cache),
                **svc.version_payload(),
            }
        )

    async def version(_: web.Request):
        return web.json_response(svc.version_payload())

    async def analyze(request: web.Request):
        try:
            body = await request.json()
        except ValueError as e:
            return web.json_response(protocol.fail(f"invalid json: {e}"), status=400)
        try:
            req = protocol.AnalyzeRequest.parse(
                body,
                max_length=config.max_text_length,
                header_client_id=request.headers.get("X-Client-Id"),
            )
        except protocol.ProtocolError as e:
            logger.info("rejected malformed analyze request: %s", e)
            return web.json_response(protocol.fail(str(e)), status=400)

        status, payload = await svc.analyze(req)
        return web.json_response(payload, status=status)

    async def clear_cache(_: web.Request):
        svc.cache.clear()
        return web.json_response({"success": True})

    app.router.add_get("/", root)
    app.router.add_get("/health", health)
    app.router.add_get("/version", version)
    app.router.add_post("/analyze", analyze)
    app.router.add_post("/cache/clear", clear_cache)

    return app


def main() -> None:
    config = GateConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(config)
    web.run_app(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
