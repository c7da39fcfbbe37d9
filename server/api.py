from fastapi import FastAPI, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Dict, Optional
import asyncio
import datetime
import logging

import uvicorn

from config import SERVICE_VERSION, get_config
from observability.logging import setup_logging
from observability.prometheus_metrics import get_metrics_summary, record_concept, setup_prometheus_metrics
from server.security import setup_cors
from services.concept import generate_concept
from services.content_service import ContentService

config = get_config()

app = FastAPI(title="Whisper Tree Notion API", version=SERVICE_VERSION)

setup_cors(app, config.frontend_url)
setup_prometheus_metrics(app, version=SERVICE_VERSION)

# Global content service, created on startup
content_service: Optional[ContentService] = None


@app.on_event("startup")
async def startup_event():
    """Configure logging, warm the FAQ cache and start its refresh task."""
    global content_service

    setup_logging(
        level=config.log_level,
        service_name=config.service_name,
        log_file=config.log_file,
        use_json=config.log_json
    )

    content_service = ContentService(config)
    await content_service.start()

    logging.info(f"Whisper Tree Notion API ready on port {config.port}")
    logging.info(f"Notion integration: {'Configured' if config.notion_configured else 'Not configured'}")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the refresh task and close the Notion session."""
    if content_service:
        await content_service.close()
        logging.info("Notion client closed")


async def get_content_service() -> ContentService:
    """Dependency to get the content service."""
    if content_service is None:
        raise HTTPException(status_code=500, detail="Content service not initialized")
    return content_service


def error_response(status_code: int, error: str, exc: Optional[Exception] = None) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "error": error}
    if exc is not None:
        content["message"] = str(exc) or type(exc).__name__
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logging.error(f"Unhandled error on {request.url.path}: {exc}")
    return error_response(500, "Internal server error", exc)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Whisper Tree Notion API",
        "version": SERVICE_VERSION,
        "health": "/health",
        "metrics": "/metrics",
        "endpoints": [
            "POST /api/search",
            "GET /api/faqs",
            "GET /api/template/random",
            "POST /api/concept/generate"
        ]
    }


@app.get("/health")
def health():
    return {"status": "ok", "service": config.service_name}


@app.get("/health/detailed")
async def detailed_health_check():
    """Health plus FAQ cache state and configured collections."""
    health_status = {
        "status": "ok",
        "service": config.service_name,
        "version": SERVICE_VERSION,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "notion": {
            "configured": config.notion_configured,
            "collections": {kind: bool(db_id) for kind, db_id in config.database_ids.items()}
        },
        "metrics": get_metrics_summary()
    }

    if content_service is None:
        health_status["status"] = "starting"
        health_status["cache"] = None
    else:
        cache = content_service.cache_status()
        health_status["cache"] = cache
        if cache["stale"]:
            health_status["status"] = "degraded"

    return health_status


@app.post("/api/search")
async def search(payload: Dict[str, Any] = Body(...), service: ContentService = Depends(get_content_service)):
    """Search all three Notion collections."""
    query = payload.get("query")
    if not query or not isinstance(query, str):
        return error_response(400, "Query parameter is required and must be a string")

    try:
        results = await service.search_content(query)
    except Exception as e:
        logging.error(f"Search error: {e}")
        return error_response(500, "Failed to search Notion content", e)

    return {
        "success": True,
        "query": query,
        "results": [doc.to_dict() for doc in results],
        "count": len(results)
    }


@app.get("/api/faqs")
async def list_faqs(service: ContentService = Depends(get_content_service)):
    """Return the cached FAQ snapshot."""
    try:
        faqs = await service.get_all_faqs()
    except Exception as e:
        logging.error(f"FAQs error: {e}")
        return error_response(500, "Failed to fetch FAQs", e)

    return {
        "success": True,
        "faqs": [doc.to_dict() for doc in faqs],
        "count": len(faqs)
    }


@app.get("/api/template/random")
async def random_template(service: ContentService = Depends(get_content_service)):
    """Return one template for inspiration."""
    try:
        template = await service.get_random_template()
    except Exception as e:
        logging.error(f"Random template error: {e}")
        return error_response(500, "Failed to fetch random template", e)

    if template is None:
        return error_response(404, "No templates found")

    return {"success": True, "template": template.to_dict()}


@app.post("/api/concept/generate")
async def concept_generate(payload: Dict[str, Any] = Body(...), service: ContentService = Depends(get_content_service)):
    """Compose Paul's concept reply from the user's wish and the FAQ snapshot."""
    user_input = payload.get("userInput")
    if not user_input or not isinstance(user_input, str):
        return error_response(400, "userInput parameter is required and must be a string")

    messages = payload.get("messages") or []
    if isinstance(messages, list):
        logging.debug(f"Generating concept after {len(messages)} chat messages")

    try:
        search_results = await service.search_content(user_input)
        faqs = await service.get_all_faqs()
        result = generate_concept(user_input, search_results, faqs)
    except Exception as e:
        logging.error(f"Concept generation error: {e}")
        return error_response(500, "Failed to generate concept", e)

    record_concept(result.matched)

    return {
        "success": True,
        "concept": result.concept,
        "sources": result.sources
    }


class ConceptServer(uvicorn.Server):
    """Uvicorn server that stops the FAQ refresh before closing its sockets."""

    def handle_exit(self, sig, frame):
        if content_service is not None:
            logging.info(f"Signal {sig} received: stopping auto-refresh and closing HTTP server")
            asyncio.get_event_loop().call_soon_threadsafe(content_service.stop_auto_refresh)
        super().handle_exit(sig, frame)


def main():
    setup_logging(
        level=config.log_level,
        service_name=config.service_name,
        log_file=config.log_file,
        use_json=config.log_json
    )
    server = ConceptServer(uvicorn.Config(app, host=config.host, port=config.port, log_config=None))
    server.run()


if __name__ == "__main__":
    main()
