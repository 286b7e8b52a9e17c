from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# HTTP
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Database
db_queries_total = Counter('db_queries_total', 'Total database queries', ['operation'])
db_errors_total = Counter('db_errors_total', 'Total failed database operations', ['operation'])

# Authentication and authorization
auth_rejections_total = Counter(
    'auth_rejections_total',
    'Requests rejected by authentication or role checks',
    ['reason']
)

def metrics_endpoint():
    """Prometheus metrics endpoint"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
