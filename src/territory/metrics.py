"""
Prometheus metrics for monitoring API performance and behavior.
"""
from prometheus_client import Counter, Histogram

# Request metrics
check_in_requests_total = Counter(
    'check_in_requests_total',
    'Total number of check-in requests received',
    ['status']
)

cell_requests_total = Counter(
    'cell_requests_total',
    'Total number of cell and territory lookups',
    ['endpoint', 'status']
)

# Latency metrics
request_duration_seconds = Histogram(
    'request_duration_seconds',
    'Request latency in seconds',
    ['endpoint']
)

# Business metrics
cells_revealed_total = Counter(
    'cells_revealed_total',
    'Number of cells newly revealed by check-ins',
    ['collection']
)

grid_errors_total = Counter(
    'grid_errors_total',
    'Invalid coordinates, resolutions or cell indices received',
    ['error']
)

# Redis metrics
redis_operations_total = Counter(
    'redis_operations_total',
    'Total Redis operations',
    ['operation', 'status']
)
