import os

# Bind to the port the platform provides
bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"

worker_class = "uvicorn.workers.UvicornWorker"
workers = int(os.getenv("WEB_CONCURRENCY", "2"))

# Trust the load balancer proxy for client IPs
forwarded_allow_ips = "*"

# Timeouts / keepalive
timeout = int(os.getenv("TIMEOUT", "60"))
# in-flight requests get this long to finish on shutdown before workers are killed
graceful_timeout = int(os.getenv("GRACEFUL_SHUTDOWN_TIMEOUT", "5"))
keepalive = int(os.getenv("KEEPALIVE", "75"))

# Logging to stdout/stderr
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOGLEVEL", "info")
