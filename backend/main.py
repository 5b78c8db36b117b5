from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from api.dependencies import get_orchestrator, shutdown_orchestrator
from api.router import limiter, router
from config import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_orchestrator().start()
    yield
    await shutdown_orchestrator()


app = FastAPI(
    title="Success Prediction API",
    description="Interview, offer, salary and time-to-hire predictions for job applications",
    version="2.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
