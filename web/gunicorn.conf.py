import os


def _workers() -> int:
    return min(max(2, (os.cpu_count() or 1) * 2), 8)


bind = os.getenv("GUNI_BIND", "0.0.0.0:8000")
wsgi_app = "config.wsgi:application"

# Payment calls block the request; threads keep workers responsive meanwhile.
worker_class = "gthread"
workers = int(os.getenv("GUNI_WORKERS", str(_workers())))
threads = int(os.getenv("GTHREADS", "4"))

# Must exceed PAYMENT_TIMEOUT_SECS plus the HTTP retry budget.
timeout = int(os.getenv("GUNI_TIMEOUT", "60"))
graceful_timeout = int(os.getenv("GUNI_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNI_KEEPALIVE", "5"))

preload_app = True
max_requests = int(os.getenv("GUNI_MAX_REQUESTS", "2000"))
max_requests_jitter = int(os.getenv("GUNI_MAX_REQUESTS_JITTER", "200"))

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNI_LOGLEVEL", "info")
access_log_format = '{"remote": "%(h)s", "request": "%(r)s", "status": %(s)s, "bytes": %(b)s, "duration_us": %(D)s, "request_id": "%({x-request-id}o)s"}'
