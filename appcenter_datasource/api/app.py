"""
FastAPI Application - App Center Data Source API

Serves the data source over HTTP: the connectivity check used by the
settings form, and the query endpoint dashboards post their targets to.

Usage:
    # Development
    uvicorn appcenter_datasource.api.app:app --reload --port 8000

    # Production
    uvicorn appcenter_datasource.api.app:app --host 0.0.0.0 --port 8000

API Documentation:
    http://localhost:8000/docs (Swagger UI)
"""

from datetime import datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status

from appcenter_datasource import __version__
from appcenter_datasource.api.middleware import RequestIDMiddleware
from appcenter_datasource.api.models import QueryPayload
from appcenter_datasource.collectors.datasource import AppCenterDataSource, QueryResponse
from appcenter_datasource.core import DataSourceConfig, get_config, get_logger, setup_logging
from appcenter_datasource.domain.query import QueryRequest, TemplateVariables

setup_logging(level="INFO", json_output=False)

logger = get_logger(__name__)

MASKED_KEY = "********"


def build_query_requests(payload: QueryPayload) -> tuple[list[QueryRequest], list[QueryResponse]]:
    """
    Build query requests from a validated dashboard payload.

    Hidden targets are skipped. A target that cannot be turned into a
    request (a limit that is not a positive integer) is answered with an
    error response for its refId; the other targets still run.

    Returns:
        (requests to run, error responses for rejected targets)
    """
    time_range = payload.range.to_time_range()
    variables = TemplateVariables(payload.scoped_vars)

    queries: list[QueryRequest] = []
    rejected: list[QueryResponse] = []
    for target in payload.targets:
        if target.hide:
            continue
        try:
            queries.append(
                QueryRequest.from_target(
                    target.model_dump(by_alias=True), time_range, timezone=payload.timezone, variables=variables
                )
            )
        except ValueError as e:
            logger.warning(f"Query {target.ref_id} rejected: {e}", extra={"ref_id": target.ref_id})
            rejected.append(QueryResponse(ref_id=target.ref_id, error=str(e)))
    return queries, rejected


def settings_echo(config: DataSourceConfig) -> dict[str, Any]:
    """Non-secret settings surface; the key is only reported as set or unset."""
    return {
        "url": config.base_url,
        "orgName": config.org_name,
        "appName": ";".join(config.app_names),
        "key": MASKED_KEY if config.api_key else "",
        "rateLimit": config.rate_limit,
    }


def create_app(config: DataSourceConfig | None = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        config: Data source configuration (default: from environment)
    """
    datasource = AppCenterDataSource(config or get_config().get_datasource_config())

    app = FastAPI(
        title="App Center Data Source API",
        description="App Center analytics (errors, crashes, events) as tabular frames",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.datasource = datasource

    app.add_middleware(RequestIDMiddleware)

    # ============================================================
    # Health Check
    # ============================================================

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "version": __version__,
        }

    # ============================================================
    # Settings
    # ============================================================

    @app.get("/settings", tags=["Settings"])
    async def get_settings():
        return settings_echo(datasource.config)

    @app.get("/test", tags=["Settings"])
    async def test_datasource():
        """
        Connectivity check.

        Returns:
            {"status": "success", "message": "Success"} or
            {"status": "error", "message": ..., "title": ...}
        """
        result = await datasource.test_datasource()
        logger.info("Connectivity check", extra={"status": result["status"]})
        return result

    # ============================================================
    # Query
    # ============================================================

    @app.post("/query", tags=["Query"])
    async def query(payload: QueryPayload, request: Request):
        """
        Run the targets of a dashboard query.

        Returns:
            {"results": {refId: {"frames": [...]} | {"error": message}}}
        """
        queries, rejected = build_query_requests(payload)

        try:
            responses = await datasource.query(queries)
        except Exception as e:
            logger.error("Query failed", exc_info=True)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Query failed: {str(e)}")

        responses = [*rejected, *responses]
        logger.info(
            "Query served",
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "targets": len(responses),
                "errors": sum(1 for r in responses if r.error is not None),
            },
        )
        return {"results": {r.ref_id: r.to_dict() for r in responses}}

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("App Center Data Source API")
    logger.info("API Docs: http://localhost:8000/docs")

    uvicorn.run("appcenter_datasource.api.app:app", host="127.0.0.1", port=8000, reload=True, log_level="info")
