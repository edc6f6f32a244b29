"""Gunicorn configuration for the validation API.

Values here are defaults; ``bind`` and ``workers`` from the ``server``
section of config.yml take precedence (see api.app.main). All logs go to
stdout/stderr so they show up in ``docker compose logs``.
"""

import sys

bind = "0.0.0.0:5000"

# Validation is CPU bound and synchronous; scale with workers, not threads
workers = 1
worker_class = "sync"
timeout = 30
keepalive = 2

accesslog = "-"
errorlog = "-"
loglevel = "info"

# %(h)s remote IP, %(r)s request line, %(s)s status, %(b)s size, %(D)s microseconds
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

capture_output = True
enable_stdio_inheritance = True

preload_app = False
reload = False
daemon = False

# Request limits
limit_request_line = 4096  # long query strings are rejected before validation
limit_request_fields = 100
limit_request_field_size = 8190


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info("Starting Gunicorn for the validation API")


def when_ready(server):
    """Called just after the server is started."""
    server.log.info("Gunicorn server is ready to accept connections")


def on_exit(server):
    server.log.info("Shutting down Gunicorn")


def worker_abort(worker):
    """Called when a worker receives a SIGABRT signal."""
    worker.log.error("Worker received SIGABRT signal - likely timeout")


logconfig_dict = {
    'version': 1,
    'disable_existing_loggers': False,
    'root': {
        'level': 'INFO',
        'handlers': ['console']
    },
    'loggers': {
        'gunicorn.error': {
            'level': 'INFO',
            'handlers': ['error_console'],
            'propagate': False,
            'qualname': 'gunicorn.error'
        },
        'gunicorn.access': {
            'level': 'INFO',
            'handlers': ['console'],
            'propagate': False,
            'qualname': 'gunicorn.access'
        },
        'validation': {
            'level': 'INFO',
            'handlers': ['console'],
            'propagate': False,
            'qualname': 'validation'
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'generic',
            'stream': sys.stdout
        },
        'error_console': {
            'class': 'logging.StreamHandler',
            'formatter': 'generic',
            'stream': sys.stderr
        },
    },
    'formatters': {
        'generic': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S',
            'class': 'logging.Formatter'
        }
    }
}
