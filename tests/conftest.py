import os
import socket
from typing import Final
from unittest.mock import patch

import pytest

from beacon_participation.utils.env import comma_separated

UNIT_MARKER = 'unit'
INTEGRATION_MARKER = 'integration'

# Beacon nodes for integration tests, e.g. a mainnet node
TESTS_CONSENSUS_CLIENT_URI: Final = comma_separated(os.getenv('TESTS_CONSENSUS_CLIENT_URI'))


@pytest.fixture(autouse=True)
def check_test_marks_compatibility(request):
    all_test_markers = {x.name for x in request.node.iter_markers()}

    if not all_test_markers & {UNIT_MARKER, INTEGRATION_MARKER}:
        pytest.fail('Test must be marked.')

    elif {UNIT_MARKER, INTEGRATION_MARKER} <= all_test_markers:
        pytest.fail('Test can not be both unit and integration at the same time.')


@pytest.fixture(autouse=True)
def configure_unit_tests(request):
    if request.node.get_closest_marker(UNIT_MARKER):

        def blocked_connect(*args, **kwargs):
            msg = (
                'Network access deprecated in unit test! '
                'Use mocks instead of real network calls. '
                f'Attempted connection: args={args}, kwargs={kwargs}'
            )
            pytest.fail(msg)

        with patch.object(socket.socket, 'connect', blocked_connect):
            yield
    else:
        yield


@pytest.fixture(autouse=True)
def configure_integration_tests(request):
    if request.node.get_closest_marker(INTEGRATION_MARKER) and '' in TESTS_CONSENSUS_CLIENT_URI:
        pytest.skip('TESTS_CONSENSUS_CLIENT_URI must be set in order to run integration tests.')
    yield


@pytest.fixture()
def consensus_client_uri() -> list[str]:
    return TESTS_CONSENSUS_CLIENT_URI
