import os

def cpu():
    return max(1, (os.cpu_count() or 1))

wsgi_app = "config.wsgi:application"
bind = f"0.0.0.0:{os.getenv('PORT', '8300')}"

# Workers: each request blocks on the user service lookup, so use threads
workers = min(max(2, cpu() * 2), 8)
worker_class = "gthread"
threads = int(os.getenv("GTHREADS", "4"))

# Timeouts must stay above HTTP_TIMEOUT_SECS of the user service client
timeout = int(os.getenv("GUNI_TIMEOUT", "30"))
graceful_timeout = int(os.getenv("GUNI_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNI_KEEPALIVE", "5"))

preload_app = True
max_requests = int(os.getenv("GUNI_MAX_REQUESTS", "2000"))
max_requests_jitter = int(os.getenv("GUNI_MAX_REQUESTS_JITTER", "200"))

# Access log as plain text; application logs are JSON (see config.settings.LOGGING)
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNI_LOGLEVEL", "info")
