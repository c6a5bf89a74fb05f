import logging

from fastapi import FastAPI
from taskdock.core import database
from taskdock.core.config import settings
from taskdock.core.errors import register_error_handlers
from taskdock.models import file, task, user  # register tables
from taskdock.routers import health, auth, tasks, files
from taskdock.storage import StorageAdapter, build_storage


def create_app(storage: StorageAdapter = None) -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    # Init DB
    database.Base.metadata.create_all(bind=database.engine)

    app = FastAPI(
        title="TaskDock API",
        version="1.0.0"
    )
    # one adapter per process, handed to routes through get_storage
    app.state.storage = storage or build_storage(settings)

    register_error_handlers(app)

    # Routes
    app.include_router(health.router, prefix="/health")
    app.include_router(auth.router)
    app.include_router(tasks.router)
    app.include_router(files.router)

    return app


app = create_app()
