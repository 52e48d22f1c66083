import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from mentorlink.core import config
from mentorlink.core.errors import ServiceError
from mentorlink.core.scheduler import start_scheduler, stop_scheduler
from mentorlink.database import Base, SessionLocal, engine, ensure_mentorship_schema
from mentorlink.models import catalog, group, mentorship, user  # noqa: F401
from mentorlink.routes import auth_routes, catalog_routes, group_routes, mentorship_routes
from mentorlink.services.catalog import seed_catalog
from mentorlink.services.recommendations import MentorRecommender
from mentorlink.services.text_generation import GeminiClientConfig, GeminiTextClient

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)
logger = logging.getLogger(__name__)


def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_mentorship_schema()
        db = SessionLocal()
        try:
            seed_catalog(db)
        finally:
            db.close()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


@asynccontextmanager
async def lifespan(app: FastAPI):
    config.validate_runtime_config()
    initialize_database()

    text_client = GeminiTextClient(GeminiClientConfig.from_settings())
    app.state.recommender = MentorRecommender(text_client, max_workers=config.RECOMMENDATION_MAX_WORKERS)
    start_scheduler()
    yield
    stop_scheduler()
    text_client.close()


app = FastAPI(title='MentorLink API', lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={'detail': exc.detail, 'kind': exc.kind},
        headers=exc.headers,
    )


@app.get('/')
def root():
    return {'status': 'MentorLink API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(catalog_routes.router, prefix='/catalog')
app.include_router(mentorship_routes.router, prefix='/mentorships')
app.include_router(group_routes.router, prefix='/groups')
