"""FastAPI app exposing lazy sequence pipelines and shared memo caches."""

import logging
from datetime import datetime

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from utils import (
    UnknownOperationError,
    PipelineError,
    evaluate_sequence,
    lookup_memoized,
    get_memo_cache,
    clear_memo_cache,
    get_catalog,
    get_cache_health,
    get_performance_summary,
)

from models import (
    SequenceRequest, SequenceResponse, MemoLookupRequest, MemoLookupResponse,
    CacheStatsResponse, CacheClearResponse, CatalogResponse, PerformanceResponse,
    HealthResponse, StatusResponse, ErrorResponse
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Lazy Memo Service",
    description="Lazy step-function pipelines and memoized lookups",
    version="1.0.0"
)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    """Report evaluation failures as 400."""
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=f"Pipeline evaluation failed: {exc}",
            error_type=type(exc.__cause__ or exc).__name__,
            timestamp=datetime.now()
        ).model_dump(mode="json")
    )


@app.get("/", response_model=StatusResponse)
async def root():
    """Basic service banner."""
    return StatusResponse(
        ok=True,
        message="Lazy memo service operational - Features: step-function pipelines, memo caches",
        timestamp=datetime.now()
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Return cache + metrics health summary."""
    return HealthResponse(
        healthy=True,
        caches=get_cache_health(),
        performance=get_performance_summary(),
        timestamp=datetime.now()
    )


@app.get("/catalog", response_model=CatalogResponse)
async def catalog():
    """List registered sources, predicates, transforms and memo functions."""
    return CatalogResponse(**get_catalog())


@app.post("/sequences/evaluate", response_model=SequenceResponse)
async def evaluate(request: SequenceRequest):
    """Build a lazy pipeline from the request and pull its pairs."""
    try:
        result = evaluate_sequence(
            request.source.to_kwargs(),
            [op.model_dump(mode="json") for op in request.operations],
            request.limit
        )
    except UnknownOperationError as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info(f"Evaluated pipeline with {len(request.operations)} operations -> {result['count']} pairs")
    return SequenceResponse(timestamp=datetime.now(), **result)


@app.post("/memo/{function_name}/lookup", response_model=MemoLookupResponse)
async def memo_lookup(function_name: str, request: MemoLookupRequest):
    """Look a key up in the named memo cache, computing it on a miss."""
    try:
        result = lookup_memoized(function_name, request.key)
    except UnknownOperationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (TypeError, ValueError) as e:
        logger.warning(f"Memo lookup failed for {function_name}({request.key!r}): {e}")
        raise HTTPException(status_code=400, detail=f"Computation failed: {e}")

    return MemoLookupResponse(timestamp=datetime.now(), **result)


@app.get("/memo/{function_name}/stats", response_model=CacheStatsResponse)
async def memo_stats(function_name: str):
    """Return hit/miss counters for a memo cache."""
    try:
        cache = get_memo_cache(function_name)
    except UnknownOperationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return CacheStatsResponse(
        function_name=function_name,
        stats=cache.stats(),
        timestamp=datetime.now()
    )


@app.delete("/memo/{function_name}", response_model=CacheClearResponse)
async def memo_clear(function_name: str):
    """Drop every cached entry of a memo cache."""
    try:
        result = clear_memo_cache(function_name)
    except UnknownOperationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return CacheClearResponse(timestamp=datetime.now(), **result)


@app.get("/performance", response_model=PerformanceResponse)
async def performance():
    """Aggregate timing of evaluations and lookups."""
    return PerformanceResponse(timestamp=datetime.now(), **get_performance_summary())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
