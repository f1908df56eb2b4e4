from unittest.mock import Mock, patch

import pytest

from beacon_participation import main as main_module
from beacon_participation.main import cli, parse_args
from beacon_participation.modules.participation.aggregator import CommitteeSizesFetchError, InvalidAttestation
from beacon_participation.modules.participation.fetcher import BlockFetchError
from beacon_participation.modules.participation.types import ParticipationReport, ParticipationStats, StageTimings
from beacon_participation.providers.consistency import InconsistentProviders
from beacon_participation.types import EpochNumber
from beacon_participation.utils.epoch import EpochRange

pytestmark = pytest.mark.unit

NODES = 'http://a:5052,http://b:3500'


@pytest.fixture()
def report():
    return ParticipationReport(
        epochs=EpochRange(EpochNumber(1), EpochNumber(1)),
        total=ParticipationStats(assigned=4, executed=2, inclusion_delay=2),
        by_epoch_position=[ParticipationStats() for _ in range(32)],
        proposal_rate=1.0,
        observed_blocks=64,
        canonical_blocks=64,
        timings=StageTimings(fetch_blocks=1.0, reconstruct_chain=0.1, aggregate_participation=0.2),
    )


@pytest.fixture()
def pool():
    pool = Mock()
    pool.check_providers_consistency.return_value = 1
    with patch.object(main_module.SourcePool, 'from_hosts', return_value=pool) as from_hosts:
        yield from_hosts


def test_parse_args():
    args = parse_args(['--epochs', '10-12', '--node', NODES, '-c', '4', '--no-progress'])

    assert args.epochs == '10-12'
    assert args.node == ['http://a:5052', 'http://b:3500']
    assert args.concurrency == 4
    assert args.no_progress


def test_parse_args_defaults():
    args = parse_args(['--epochs', '10'])

    assert args.concurrency == main_module.variables.CONCURRENCY_PER_NODE
    assert args.node == main_module.variables.CONSENSUS_CLIENT_URI
    assert not args.no_progress


def test_parse_args_epochs_required():
    with pytest.raises(SystemExit):
        parse_args(['--node', NODES])


def test_cli_success(pool, report, capsys):
    with patch.object(main_module, 'ParticipationAudit') as audit:
        audit.return_value.execute.return_value = report

        assert cli(['--epochs', '1', '--node', NODES, '--no-progress']) == 0

    pool.assert_called_once()
    assert pool.call_args.args == (['http://a:5052', 'http://b:3500'], main_module.variables.CONCURRENCY_PER_NODE)
    audit.return_value.execute.assert_called_once_with(EpochRange(EpochNumber(1), EpochNumber(1)))
    output = capsys.readouterr().out
    assert output.startswith('Slots\n')
    assert '50.00%' in output


def test_cli_invalid_epochs(pool):
    assert cli(['--epochs', '20-10', '--node', NODES]) == 1
    pool.assert_not_called()


def test_cli_missing_node(pool):
    assert cli(['--epochs', '1', '--node', '']) == 1
    pool.assert_not_called()


def test_cli_inconsistent_nodes(pool):
    pool.return_value.check_providers_consistency.side_effect = InconsistentProviders('Different chain ids detected')

    with patch.object(main_module, 'ParticipationAudit') as audit:
        assert cli(['--epochs', '1', '--node', NODES, '--no-progress']) == 1

    audit.assert_not_called()


@pytest.mark.parametrize(
    'error',
    [
        BlockFetchError('Failed to fetch block for slot 40'),
        InvalidAttestation('Attestation for slot 40 in block 0x01 is malformed'),
        CommitteeSizesFetchError('Failed to fetch committees for epoch 1'),
    ],
)
def test_cli_audit_failure(pool, error, caplog):
    with patch.object(main_module, 'ParticipationAudit') as audit:
        audit.return_value.execute.side_effect = error

        assert cli(['--epochs', '1', '--node', NODES, '--no-progress']) == 1

    assert [r.msg['msg'] for r in caplog.records if r.levelname == 'ERROR'] == ['Participation audit failed.']


def test_cli_progress_callback_counts_slots(pool, report):
    def execute(epochs):
        on_slot_fetched = audit.call_args.args[1]
        for _ in range(epochs.slots_count):
            on_slot_fetched()
        return report

    with patch.object(main_module, 'ParticipationAudit') as audit:
        audit.return_value.execute.side_effect = execute

        assert cli(['--epochs', '1', '--node', NODES, '--no-progress']) == 0
