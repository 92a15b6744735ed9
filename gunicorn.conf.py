"""Gunicorn production configuration.

Run from backend/: gunicorn -c ../gunicorn.conf.py app.main:app
"""
import os

bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
# Import jobs are held in worker memory; polls must reach the same worker.
workers = int(os.getenv("GUNICORN_WORKERS", "1"))
worker_class = "uvicorn.workers.UvicornWorker"
timeout = 120
keepalive = 5
max_requests = 1000
max_requests_jitter = 100
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
