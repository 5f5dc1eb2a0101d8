"""
metrics.py - Resolution layer metrics for monitoring
"""
from prometheus_client import Counter, Gauge, Histogram, generate_latest

sameas_cache_hits = Counter(
    'sameas_cache_hits_total',
    'Same-as cache hit count',
    ['cache']  # 'file' or 'memory'
)

sameas_cache_misses = Counter(
    'sameas_cache_misses_total',
    'Same-as cache miss count',
    ['cache']
)

sameas_resolution_failures = Counter(
    'sameas_resolution_failures_total',
    'Same-as retrievals that fell back to the unresolved URI',
    ['retriever']
)

sameas_retrieval_duration = Histogram(
    'sameas_retrieval_duration_seconds',
    'Duration of uncached same-as retrievals',
    ['cache']
)

entity_checks = Counter(
    'entity_checks_total',
    'Entity existence checks by outcome',
    ['result']  # 'exists', 'missing', 'unknown'
)

circuit_breaker_state = Gauge(
    'circuit_breaker_state',
    'Circuit breaker state (0=closed, 1=open, 2=half-open)',
    ['service']
)

def get_metrics():
    """Get Prometheus metrics"""
    return generate_latest()
