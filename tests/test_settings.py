import logging

from ticketdesk.core.config import Settings
from ticketdesk.core.logging import _otlp_headers, configure_logging, init_tracer, shutdown_tracer


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("TOKEN_SECRET", "from-env")
    monkeypatch.setenv("TICKET_PAGE_SIZE", "25")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.token_secret == "from-env"
    assert settings.ticket_page_size == 25
    assert settings.log_level == "debug"


def test_settings_defaults():
    settings = Settings(_env_file=None)

    assert settings.ticket_page_size == 1000
    assert settings.token_ttl_seconds == 24 * 60 * 60
    assert settings.postgres_connect_attempts == 10
    assert settings.password_schemes == ("argon2",)
    assert settings.otel_enabled is False


def test_otlp_headers_skip_malformed_items():
    assert _otlp_headers(None) == {}
    assert _otlp_headers("api-key = abc, broken, x=1=2") == {"api-key": "abc", "x": "1=2"}


def test_configure_logging_applies_level():
    root = logging.getLogger()
    watched = [logging.getLogger(name) for name in ("ticketdesk", "asyncpg", "passlib")]
    saved_root = root.level, list(root.handlers)
    saved_levels = [logger.level for logger in watched]
    settings = Settings(_env_file=None, log_level="info", app_name="ticketdesk-test")

    try:
        logger = configure_logging(settings)

        assert logger.name == "ticketdesk-test"
        assert logger.getEffectiveLevel() == logging.INFO
        assert logging.getLogger("ticketdesk").level == logging.INFO
        assert logging.getLogger("asyncpg").level == logging.WARNING
        assert logging.getLogger("passlib").level == logging.ERROR
    finally:
        root.setLevel(saved_root[0])
        root.handlers[:] = saved_root[1]
        for watched_logger, level in zip(watched, saved_levels):
            watched_logger.setLevel(level)


def test_unknown_log_level_falls_back_to_info():
    root = logging.getLogger()
    saved = root.level, list(root.handlers), logging.getLogger("ticketdesk").level

    try:
        configure_logging(Settings(_env_file=None, log_level="chatty"))

        assert root.level == logging.INFO
    finally:
        root.setLevel(saved[0])
        root.handlers[:] = saved[1]
        logging.getLogger("ticketdesk").setLevel(saved[2])


def test_tracer_disabled_by_default():
    provider = init_tracer(Settings(_env_file=None))

    assert provider is None
    shutdown_tracer(provider)
