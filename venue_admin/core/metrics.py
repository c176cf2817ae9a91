"""
Metrics instrumentation for observability.
Prometheus-compatible counters for the query cache and the mutation path.
"""

from prometheus_client import Counter

# Cache metrics
cache_operations = Counter(
    'venue_admin_cache_operations_total',
    'Query cache lookups',
    ['result']  # hit, miss, dedup
)

# Remote read metrics
remote_fetches = Counter(
    'venue_admin_remote_fetches_total',
    'Remote fetches issued by the query cache',
    ['result']  # success, retry, error
)

# Mutation metrics
mutations = Counter(
    'venue_admin_mutations_total',
    'Remote write operations',
    ['operation', 'result']  # success, error
)

# Booking lifecycle metrics
status_transitions = Counter(
    'venue_admin_status_transitions_total',
    'Booking status change attempts',
    ['target', 'result']  # applied, noop, invalid
)


# Convenience functions for instrumentation
def record_cache_operation(result: str):
    """Result: hit, miss, dedup"""
    cache_operations.labels(result=result).inc()


def record_remote_fetch(result: str):
    """Result: success, retry, error"""
    remote_fetches.labels(result=result).inc()


def record_mutation(operation: str, success: bool):
    result = "success" if success else "error"
    mutations.labels(operation=operation, result=result).inc()


def record_status_transition(target: str, result: str):
    """Result: applied, noop, invalid"""
    status_transitions.labels(target=target, result=result).inc()
