"""
Gunicorn configuration for the EcoPledge API.

    gunicorn ecopledge.main:app -c gunicorn.conf.py

Env vars that override defaults:
  PORT     — TCP port to bind (default: 8000)
  WORKERS  — number of worker processes (default: 2)
  TIMEOUT  — worker timeout in seconds (default: 60)
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = int(os.environ.get("WORKERS", "2"))

# Route handlers are sync and run in Uvicorn's threadpool inside each worker.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Must stay above ORACLE_TIMEOUT_SECONDS times the number of oracle calls per
# commitment (interpret, estimate, milestones).
timeout = int(os.environ.get("TIMEOUT", "60"))

loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
