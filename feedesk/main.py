from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feedesk.api.v1.auth.router import router as auth_router
from feedesk.api.v1.class_fees.router import router as class_fees_router
from feedesk.api.v1.payments.router import router as payments_router
from feedesk.api.v1.reports.router import router as reports_router
from feedesk.api.v1.students.router import router as students_router
from feedesk.api.v1.users.router import router as users_router
from feedesk.core.config import settings
from feedesk.core.log_config import configure_logging


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="School Fee Desk")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(students_router)
    app.include_router(payments_router)
    app.include_router(class_fees_router)
    app.include_router(reports_router)

    return app


app = create_app()
