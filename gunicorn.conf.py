"""
Gunicorn configuration for the Skyforge API server.

Env vars that override defaults:
  PORT       — TCP port to bind (default: 8000)
  WORKERS    — number of worker processes (default: 1)
  LOG_LEVEL  — gunicorn log level (default: info)
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Collection writes are serialised by an in-process lock: keep one worker.
workers = int(os.environ.get("WORKERS", "1"))

worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5
timeout = 120

# stdout only
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
