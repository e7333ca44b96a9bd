import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tournament_app.config import CORS_ORIGINS, LOG_LEVEL
from tournament_app.database import init_db
from tournament_app.routes import fixtures, runtime, standings, stats, teams, tournaments

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Cricket Tournament API"

app = FastAPI(title=APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(teams.router, prefix="/api", tags=["teams"])
app.include_router(fixtures.router, prefix="/api", tags=["fixtures"])
# Result entry drives standings, bracket progression and player stats
app.include_router(runtime.router, prefix="/api", tags=["runtime"])
app.include_router(standings.router, prefix="/api", tags=["standings"])
app.include_router(stats.router, prefix="/api", tags=["stats"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("%s started with %d routes", APP_NAME, len(app.routes))


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "status": "healthy"}
