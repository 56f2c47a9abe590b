"""
Gunicorn configuration for production.

    gunicorn eshop.main:app -c gunicorn_config.py
"""

import multiprocessing
import os
from pathlib import Path

# Workers
workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))

# Async worker class for the ASGI app
worker_class = "uvicorn.workers.UvicornWorker"

bind = os.getenv("BIND", "127.0.0.1:8000")

# Logs
log_dir = Path(__file__).parent / "logs"
log_dir.mkdir(exist_ok=True)

accesslog = str(log_dir / "access.log")
errorlog = str(log_dir / "error.log")
loglevel = "info"

# Timeouts
timeout = 120
keepalive = 5

# Worker recycling
max_requests = 1000
max_requests_jitter = 50

capture_output = True
enable_stdio_inheritance = True
