from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor import __version__
from gse_monitor.analytics.errors import ValuationError
from gse_monitor.api.routes import alerts, backtests, portfolio, profile, stocks, watchlist
from gse_monitor.api.schemas.common import ErrorResponse
from gse_monitor.config.settings import settings
from gse_monitor.database.config import get_db
from gse_monitor.services.backtest_runner import backtest_runner
from gse_monitor.services.errors import ConflictError, NotFoundError
from gse_monitor.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    backtest_runner.start()
    try:
        await backtest_runner.resume()
    except Exception as e:
        logger.error(f"Could not resume unfinished backtests: {e}", exc_info=True)
    logger.info(f"{settings.app_name} started ({settings.environment})")
    yield
    backtest_runner.shutdown()


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="Ghana Stock Exchange dashboard: valuation, alerts and backtests",
    lifespan=lifespan,
)

# CORS - allow the dashboard frontend to call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValuationError)
async def valuation_error_handler(request: Request, exc: ValuationError):
    logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(detail=str(exc), error_code=exc.error_code).model_dump(),
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorResponse(detail=str(exc), error_code="not_found").model_dump(),
    )


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    logger.warning(f"{request.method} {request.url.path} conflicted: {exc}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=ErrorResponse(detail=str(exc), error_code="conflict").model_dump(),
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(detail=str(exc), error_code="invalid_request").model_dump(),
    )


# Register routers
app.include_router(stocks.router, prefix="/api")
app.include_router(portfolio.router, prefix="/api")
app.include_router(watchlist.router, prefix="/api")
app.include_router(alerts.router, prefix="/api")
app.include_router(backtests.router, prefix="/api")
app.include_router(profile.router, prefix="/api")


@app.get("/")
async def root():
    return {"message": settings.app_name, "status": "running"}


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check with database connectivity"""
    try:
        await db.execute(text("SELECT 1"))

        from gse_monitor.models.stock import Stock
        result = await db.execute(select(func.count(Stock.id)))
        stock_count = result.scalar()

        return {
            "status": "healthy",
            "database": "connected",
            "environment": settings.environment,
            "total_stocks": stock_count,
            "timestamp": datetime.now().isoformat()
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(e),
                "timestamp": datetime.now().isoformat()
            }
        )
