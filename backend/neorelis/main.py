import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from neorelis.core.config import settings
from neorelis.models import Base  # noqa: F401 - register models
from neorelis.routers import auth, drafts, health, notifications, projects
from neorelis.services.email import SmtpMailSink

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="NeoReLiS API",
    description="Systematic literature review projects, drafts and notifications",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One mail transport for the process, handed to routes through get_mail_sink
app.state.mail_sink = SmtpMailSink(settings)

prefix = settings.API_V1_PREFIX
app.include_router(health.router, prefix="/health")
app.include_router(auth.router, prefix=f"{prefix}/auth")
# Drafts before projects so "/projects/drafts" never matches "/projects/{project_id}"
app.include_router(drafts.router, prefix=f"{prefix}/projects/drafts")
app.include_router(projects.router, prefix=f"{prefix}/projects")
app.include_router(notifications.router, prefix=f"{prefix}/notifications")


@app.on_event("startup")
async def startup():
    if settings.AUTO_CREATE_TABLES:
        from neorelis.core.database import engine
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")
