"""Gunicorn production configuration."""
import multiprocessing
import os

wsgi_app = "app.main:app"
pythonpath = "backend"
bind = "0.0.0.0:8000"
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
timeout = 120
keepalive = 5
preload_app = True
accesslog = "-"
errorlog = "-"
loglevel = "info"

if os.environ.get("ORDER_STORE", "memory") == "sql":
    workers = multiprocessing.cpu_count() * 2 + 1
    max_requests = 1000
    max_requests_jitter = 100
else:
    # The in-memory order store lives in one process and must not be recycled.
    workers = 1
