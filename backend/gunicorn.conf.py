import os

# App factory (APP_ENV picks the config class)
wsgi_app = "account:create_app()"

# Bind & workers
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = int(os.getenv("GUNICORN_THREADS", "4"))
# Longer than HANDLER_TIMEOUT so request deadlines fire first
timeout = 30
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

forwarded_allow_ips = "*"
proxy_protocol = False
