from enum import Enum

from prometheus_client import Histogram, Info
from prometheus_client.utils import INF

from beacon_participation.variables import PROMETHEUS_PREFIX


class Status(Enum):
    SUCCESS = 'success'
    FAILURE = 'failure'


ENV_VARIABLES_INFO = Info(
    'env_variables',
    'Public env variables of the audit run',
    namespace=PROMETHEUS_PREFIX,
)

# Audit over the widest epochs range takes hours
FUNCTIONS_DURATION = Histogram(
    'functions_duration',
    'Duration of the audit and its stages',
    ['name', 'status'],
    namespace=PROMETHEUS_PREFIX,
    buckets=(1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1800.0, 3600.0, 7200.0, INF),
)

CL_REQUESTS_DURATION = Histogram(
    'cl_requests_duration',
    'Duration of requests to Beacon nodes',
    ['endpoint', 'code', 'domain'],
    namespace=PROMETHEUS_PREFIX,
    buckets=(.005, .01, .025, .05, .1, .25, .5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, INF),
)
