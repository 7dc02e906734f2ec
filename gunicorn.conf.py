"""
Gunicorn configuration for the habit accountability auth API.

Workers come from HABITAUTH_WORKERS. Left unset, a sqlite database gets a
single worker: every login transaction takes sqlite's database-wide write
lock, so extra processes only queue on it. Point HABITAUTH_DATABASE_URL at
PostgreSQL or MySQL to scale out.
"""
import os

from habit_auth.core.config import get_settings

settings = get_settings()

wsgi_app = "habit_auth.main:app"
bind = os.getenv("HABITAUTH_BIND", f"{settings.host}:{settings.port}")

workers = settings.worker_count
worker_class = "uvicorn.workers.UvicornWorker"
timeout = 30
graceful_timeout = 30
keepalive = 5

# logging is configured by habit_auth.main; gunicorn only writes to stdio
accesslog = "-"
errorlog = "-"
loglevel = "debug" if settings.debug else "info"

proc_name = "habit-auth"
