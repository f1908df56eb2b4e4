import os
from typing import Final

from beacon_participation.utils.env import comma_separated, from_file_or_env

# - Providers -
# Comma separated list of Beacon nodes, e.g. http://localhost:3500,http://localhost:5052
CONSENSUS_CLIENT_URI: Final = comma_separated(from_file_or_env('CONSENSUS_CLIENT_URI'))

# - App specific -
CONCURRENCY_PER_NODE: Final = int(os.getenv('CONCURRENCY_PER_NODE', 16))
assert CONCURRENCY_PER_NODE > 0, "CONCURRENCY_PER_NODE must be more than 0"

# HTTP variables
HTTP_REQUEST_TIMEOUT_CONSENSUS: Final = int(os.getenv('HTTP_REQUEST_TIMEOUT_CONSENSUS', 60))
# No retries by default: a failed request aborts the whole audit
HTTP_REQUEST_RETRY_COUNT_CONSENSUS: Final = int(os.getenv('HTTP_REQUEST_RETRY_COUNT_CONSENSUS', 0))
HTTP_REQUEST_SLEEP_BEFORE_RETRY_IN_SECONDS_CONSENSUS: Final = int(
    os.getenv('HTTP_REQUEST_SLEEP_BEFORE_RETRY_IN_SECONDS_CONSENSUS', 5)
)

# - Logging -
LOG_LEVEL: Final = os.getenv('LOG_LEVEL', 'INFO').upper()

# - Metrics -
# Exporter is disabled when port is 0
PROMETHEUS_PORT: Final = int(os.getenv('PROMETHEUS_PORT', 0))
PROMETHEUS_PREFIX: Final = os.getenv("PROMETHEUS_PREFIX", "beacon_participation")


def check_uri_required_variables(consensus_client_uri: list[str]):
    required_uris = {
        'CONSENSUS_CLIENT_URI': consensus_client_uri,
    }
    return [name for name, uri in required_uris.items() if '' in uri]


def raise_from_errors(errors):
    if errors:
        raise ValueError("The following variables are required: " + ", ".join(errors))


# All non-private env variables to the logs in main
PUBLIC_ENV_VARS = {
    key: str(value)
    for key, value in {
        'CONCURRENCY_PER_NODE': CONCURRENCY_PER_NODE,
        'HTTP_REQUEST_TIMEOUT_CONSENSUS': HTTP_REQUEST_TIMEOUT_CONSENSUS,
        'HTTP_REQUEST_RETRY_COUNT_CONSENSUS': HTTP_REQUEST_RETRY_COUNT_CONSENSUS,
        'HTTP_REQUEST_SLEEP_BEFORE_RETRY_IN_SECONDS_CONSENSUS': HTTP_REQUEST_SLEEP_BEFORE_RETRY_IN_SECONDS_CONSENSUS,
        'LOG_LEVEL': LOG_LEVEL,
        'PROMETHEUS_PORT': PROMETHEUS_PORT,
        'PROMETHEUS_PREFIX': PROMETHEUS_PREFIX,
    }.items()
}

PRIVATE_ENV_VARS = {
    'CONSENSUS_CLIENT_URI': CONSENSUS_CLIENT_URI,
}

assert not set(PRIVATE_ENV_VARS.keys()).intersection(set(PUBLIC_ENV_VARS.keys()))
