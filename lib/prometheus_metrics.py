"""
Prometheus metrics for the notes status service
Following standard naming conventions: https://prometheus.io/docs/practices/naming/
"""
from prometheus_client import Counter, Histogram, Gauge
import time

# ============================================================================
# HTTP Metrics
# ============================================================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================================================
# Notes
# ============================================================================

notes_created_total = Counter(
    'notes_created_total',
    'Total number of notes inserted'
)

# ============================================================================
# Database Metrics
# ============================================================================

database_connections_total = Gauge(
    'database_connections_total',
    'Total number of database connections'
)

database_connections_idle = Gauge(
    'database_connections_idle',
    'Number of idle database connections'
)

# ============================================================================
# Application Health
# ============================================================================

app_uptime_seconds = Gauge(
    'app_uptime_seconds',
    'Application uptime in seconds'
)

health_check_status = Gauge(
    'health_check_status',
    'Health check status (1 = healthy, 0 = unhealthy)',
    ['check_type']
)

# ============================================================================
# Helper Functions
# ============================================================================

APP_START_TIME = time.time()


def update_uptime():
    """Update application uptime metric"""
    app_uptime_seconds.set(time.time() - APP_START_TIME)


def update_pool_gauges(stats: dict):
    """Copy a Database.stats() snapshot into the connection gauges"""
    database_connections_total.set(stats.get("size", 0))
    database_connections_idle.set(stats.get("idle", 0))
