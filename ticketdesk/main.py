from contextlib import asynccontextmanager

from fastapi import FastAPI

from ticketdesk.api.routes import auth, ping, tickets
from ticketdesk.core.config import Settings, get_settings
from ticketdesk.core.errors import register_error_handlers
from ticketdesk.core.logging import configure_logging, init_tracer, shutdown_tracer
from ticketdesk.security.passwords import PasslibPasswordHasher
from ticketdesk.security.tokens import TokenService
from ticketdesk.services.postgres import PostgresPool
from ticketdesk.tickets.repository import TicketRepository
from ticketdesk.tickets.service import TicketService
from ticketdesk.users.repository import UserRepository
from ticketdesk.users.service import AuthService


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings: Settings = app.state.settings
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)
    if not settings.token_secret:
        logger.warning("token_secret_missing: logins and authenticated routes will fail")

    postgres = PostgresPool.from_settings(settings)
    app.state.postgres = postgres
    try:
        pool = await postgres.get_pool()

        user_repository = UserRepository(pool)
        ticket_repository = TicketRepository(pool)
        # tickets.creator_id references users, so users goes first
        await user_repository.ensure_schema()
        await ticket_repository.ensure_schema()

        app.state.auth_service = AuthService(
            user_repository,
            hasher=PasslibPasswordHasher(settings.password_schemes),
            tokens=app.state.token_service,
        )
        app.state.ticket_service = TicketService(ticket_repository, page_size=settings.ticket_page_size)
        logger.info("ticketdesk_started environment=%s", settings.environment)
        yield
    finally:
        await postgres.close()
        shutdown_tracer(tracer_provider)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.token_service = TokenService.from_settings(settings)
    register_error_handlers(app)
    app.include_router(ping.router)
    app.include_router(auth.router)
    app.include_router(tickets.router)
    return app


app = create_app()
