#!/usr/bin/env python3
"""
TreeIndex Directory Server
==========================

FastAPI service exposing a dual-index directory:
- Entity add / lookup / removal by id or by name
- Prefix, id range and fuzzy name search
- Health check, directory statistics and Prometheus metrics

The directory is not thread-safe, so every request takes the same lock
before touching it.
"""

import sys
import time
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from pathlib import Path

from fastapi import FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse
import uvicorn
from pydantic import BaseModel, Field

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings import TreeIndexConfig, get_config
from treeindex import (
    DualIndexDirectory, Entity, ErrorCode, TreeIndexError, DuplicateKeyError, NotFoundError
)
from treeindex.loader import seed_directory

logger = logging.getLogger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter('treeindex_requests_total', 'Total HTTP requests', ['method', 'endpoint'])
REQUEST_DURATION = Histogram('treeindex_request_duration_seconds', 'HTTP request duration')
OPERATION_COUNT = Counter('treeindex_operations_total', 'Directory operations', ['operation', 'outcome'])
ENTITY_GAUGE = Gauge('treeindex_entities', 'Entities currently indexed')

STATUS_BY_CODE = {
    ErrorCode.DUPLICATE_KEY: 409,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.EMPTY_TREE: 404,
    ErrorCode.CONFIGURATION_ERROR: 500,
    ErrorCode.INVARIANT_VIOLATION: 500,
    ErrorCode.UNKNOWN: 500,
}


# Pydantic models
class EntityModel(BaseModel):
    """Entity request/response model"""
    entity_id: int
    name: str = Field(..., min_length=1)


class EntityListResponse(BaseModel):
    count: int
    entities: List[EntityModel]


class HealthResponse(BaseModel):
    """Health check response model"""
    status: str
    timestamp: str
    version: str
    entities: int
    consistent: bool
    uptime: float


def _to_model(directory: DualIndexDirectory, entity: Any) -> EntityModel:
    return EntityModel(entity_id=directory.id_of(entity), name=directory.name_of(entity))


def _to_list(directory: DualIndexDirectory, entities: List[Any]) -> EntityListResponse:
    return EntityListResponse(count=len(entities), entities=[_to_model(directory, e) for e in entities])


def create_app(directory: Optional[DualIndexDirectory] = None,
               config: Optional[TreeIndexConfig] = None,
               make_entity: Callable[[int, str], Any] = Entity) -> FastAPI:
    """
    Create and configure the FastAPI application

    Args:
        directory: Directory to serve; a new one (seeded from config) by default
        config: Settings; the global configuration by default
        make_entity: Builds a record the directory can index from (id, name)

    Handlers are plain functions so FastAPI runs them in its threadpool,
    where the shared lock serialises access to the directory.
    """
    config = config or get_config()
    if directory is None:
        directory = DualIndexDirectory()
        if config.seed_file:
            seed_directory(directory, config.seed_file)

    app = FastAPI(
        title="TreeIndex Directory API",
        description="Dual-index entity directory backed by AVL trees",
        version="1.0.0",
        docs_url="/docs" if config.debug_mode else None,
        redoc_url=None,
    )
    app.state.directory = directory
    app.state.lock = threading.Lock()
    app.state.config = config
    app.state.started = time.time()
    ENTITY_GAUGE.set(len(directory))

    @app.middleware("http")
    async def track_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        REQUEST_COUNT.labels(method=request.method, endpoint=request.url.path).inc()
        REQUEST_DURATION.observe(time.time() - start_time)
        return response

    @app.exception_handler(TreeIndexError)
    async def treeindex_error_handler(request: Request, exc: TreeIndexError):
        status = STATUS_BY_CODE.get(exc.code, 500)
        if status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=status,
            content={"error": exc.code.value, "message": exc.message, "details": exc.details},
        )

    lock: threading.Lock = app.state.lock

    # Health and metrics
    @app.get("/health", response_model=HealthResponse)
    def health_check():
        with lock:
            count = len(directory)
            consistent = directory.is_consistent()
        return HealthResponse(
            status="healthy" if consistent else "degraded",
            timestamp=datetime.now(timezone.utc).isoformat(),
            version="1.0.0",
            entities=count,
            consistent=consistent,
            uptime=time.time() - app.state.started,
        )

    @app.get("/metrics")
    def metrics_endpoint():
        """Prometheus metrics endpoint"""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/api/v1/stats")
    def directory_stats() -> Dict[str, Any]:
        with lock:
            return directory.stats()

    # Entity endpoints
    @app.post("/api/v1/entities", response_model=EntityModel, status_code=201)
    def add_entity(payload: EntityModel):
        entity = make_entity(payload.entity_id, payload.name)
        with lock:
            added = directory.add_entity(entity)
            ENTITY_GAUGE.set(len(directory))
        OPERATION_COUNT.labels(operation="add", outcome="ok" if added else "duplicate").inc()
        if not added:
            raise DuplicateKeyError(
                f"id {payload.entity_id} or name '{payload.name}' already exists",
                {'entity_id': payload.entity_id, 'name': payload.name},
            )
        logger.info(f"Added entity {payload.entity_id} '{payload.name}'")
        return _to_model(directory, entity)

    @app.get("/api/v1/entities/by-name/{name}", response_model=EntityModel)
    def get_by_name(name: str):
        with lock:
            entity = directory.search_by_name(name)
        if entity is None:
            raise NotFoundError(f"no entity named '{name}'", {'name': name})
        return _to_model(directory, entity)

    @app.delete("/api/v1/entities/by-name/{name}", status_code=204)
    def delete_by_name(name: str):
        with lock:
            removed = directory.remove_by_name(name)
            ENTITY_GAUGE.set(len(directory))
        OPERATION_COUNT.labels(operation="remove", outcome="ok" if removed else "missing").inc()
        if not removed:
            raise NotFoundError(f"no entity named '{name}'", {'name': name})
        return Response(status_code=204)

    @app.get("/api/v1/entities/{entity_id}", response_model=EntityModel)
    def get_by_id(entity_id: int):
        with lock:
            entity = directory.search_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"no entity with id {entity_id}", {'entity_id': entity_id})
        return _to_model(directory, entity)

    @app.delete("/api/v1/entities/{entity_id}", status_code=204)
    def delete_by_id(entity_id: int):
        with lock:
            removed = directory.remove_by_id(entity_id)
            ENTITY_GAUGE.set(len(directory))
        OPERATION_COUNT.labels(operation="remove", outcome="ok" if removed else "missing").inc()
        if not removed:
            raise NotFoundError(f"no entity with id {entity_id}", {'entity_id': entity_id})
        return Response(status_code=204)

    # Search endpoints
    @app.get("/api/v1/search/prefix", response_model=EntityListResponse)
    def search_prefix(prefix: str = ""):
        with lock:
            entities = directory.search_by_name_prefix(prefix)
        return _to_list(directory, entities)

    @app.get("/api/v1/search/range", response_model=EntityListResponse)
    def search_range(min_id: int, max_id: int):
        with lock:
            entities = directory.get_entities_in_id_range(min_id, max_id)
        return _to_list(directory, entities)

    @app.get("/api/v1/search/fuzzy", response_model=EntityListResponse)
    def search_fuzzy(query: str, max_distance: Optional[int] = Query(default=None, ge=0)):
        distance = config.default_max_distance if max_distance is None else max_distance
        with lock:
            entities = directory.fuzzy_name_search(query, distance)
        return _to_list(directory, entities)

    return app


def main():
    """Run the server with uvicorn"""
    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger.info(f"Starting TreeIndex directory server on {config.host}:{config.port}")
    uvicorn.run(create_app(config=config), host=config.host, port=config.port,
                log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
