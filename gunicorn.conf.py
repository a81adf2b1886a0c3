import multiprocessing
import os


bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"
wsgi_app = "ponto:create_app()"
workers = int(os.getenv("WEB_CONCURRENCY", max(2, multiprocessing.cpu_count() + 1)))
worker_class = "sync"
timeout = 60
graceful_timeout = 30
keepalive = 5
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
