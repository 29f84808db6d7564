"""Prometheus metrics for the application"""
from prometheus_client import Counter, Gauge, REGISTRY


def _counter(name, documentation, labelnames=()):
    # Re-importing the module (tests, reloaders) must not re-register collectors
    try:
        return Counter(name, documentation, labelnames)
    except ValueError:
        return REGISTRY._names_to_collectors.get(name)


def _gauge(name, documentation, labelnames=()):
    try:
        return Gauge(name, documentation, labelnames)
    except ValueError:
        return REGISTRY._names_to_collectors.get(name)


# Auth metrics
login_attempts_counter = _counter(
    'movieflix_login_attempts_total',
    'Total number of login attempts',
    ['status', 'method']
)

token_verification_failures_counter = _counter(
    'movieflix_token_verification_failures_total',
    'Bearer tokens rejected by the identity provider',
    ['code']
)

accounts_created_counter = _counter(
    'movieflix_accounts_created_total',
    'Accounts created on first sight of an identity'
)

# Profile metrics
profile_operations_counter = _counter(
    'movieflix_profile_operations_total',
    'Profile store operations',
    ['operation', 'status']
)

# Catalog metrics
active_plans_gauge = _gauge(
    'movieflix_active_plans',
    'Number of active subscription plans'
)
