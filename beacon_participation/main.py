import argparse
import sys

from prometheus_client import start_http_server
from tqdm import tqdm

from beacon_participation import variables
from beacon_participation.constants import MAX_INCLUSION_DELAY
from beacon_participation.metrics.logging import logging
from beacon_participation.metrics.prometheus.basic import ENV_VARIABLES_INFO
from beacon_participation.metrics.prometheus.participation import FETCHED_SLOTS_COUNT
from beacon_participation.modules.participation.aggregator import CommitteeSizesFetchError, InvalidAttestation
from beacon_participation.modules.participation.chain import ChainIntegrityError, EmptyChainError
from beacon_participation.modules.participation.fetcher import BlockFetchError
from beacon_participation.modules.participation.participation import ParticipationAudit
from beacon_participation.modules.participation.report import log_report, render_report
from beacon_participation.providers.consensus.pool import SourcePool
from beacon_participation.providers.consistency import InconsistentProviders, NotHealthyProvider
from beacon_participation.providers.http_provider import NoHostsProvided
from beacon_participation.utils.env import comma_separated
from beacon_participation.utils.epoch import InvalidEpochRange, parse_epoch_range

logger = logging.getLogger(__name__)

# Errors that abort the audit with a message instead of a traceback
AUDIT_ERRORS = (
    InvalidEpochRange,
    NoHostsProvided,
    NotHealthyProvider,
    InconsistentProviders,
    BlockFetchError,
    EmptyChainError,
    ChainIntegrityError,
    InvalidAttestation,
    CommitteeSizesFetchError,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Attestation participation and inclusion delay audit over an epochs window",
    )
    parser.add_argument(
        "--epochs",
        required=True,
        help='Epoch "N" or inclusive epochs range "A-B"',
    )
    parser.add_argument(
        "--node",
        type=comma_separated,
        default=variables.CONSENSUS_CLIENT_URI,
        help="Comma-separated Beacon node addresses, such as http://localhost:3500,http://localhost:5052. "
             "Defaults to CONSENSUS_CLIENT_URI",
    )
    parser.add_argument(
        "-c",
        "--concurrency",
        type=int,
        default=variables.CONCURRENCY_PER_NODE,
        help="Per-node concurrency limit. Defaults to CONCURRENCY_PER_NODE",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not show the progress bar",
    )
    return parser.parse_args(argv)


def main(args: argparse.Namespace) -> None:
    logger.info({
        'msg': 'Participation audit startup.',
        'variables': {
            'epochs': args.epochs,
            'nodes_count': len(args.node),
            'concurrency': args.concurrency,
            **variables.PUBLIC_ENV_VARS,
        },
    })
    ENV_VARIABLES_INFO.info(variables.PUBLIC_ENV_VARS)

    # Configuration errors are reported before any request is sent
    epochs = parse_epoch_range(args.epochs)
    variables.raise_from_errors(variables.check_uri_required_variables(args.node))

    if variables.PROMETHEUS_PORT:
        logger.info({'msg': f'Start http server with prometheus metrics on port {variables.PROMETHEUS_PORT}'})
        start_http_server(variables.PROMETHEUS_PORT)

    logger.info({'msg': 'Initialize Beacon nodes pool.'})
    pool = SourcePool.from_hosts(
        args.node,
        args.concurrency,
        request_timeout=variables.HTTP_REQUEST_TIMEOUT_CONSENSUS,
        retry_total=variables.HTTP_REQUEST_RETRY_COUNT_CONSENSUS,
        retry_backoff_factor=variables.HTTP_REQUEST_SLEEP_BEFORE_RETRY_IN_SECONDS_CONSENSUS,
    )

    logger.info({'msg': 'Check configured Beacon nodes.'})
    chain_id = pool.check_providers_consistency()
    logger.info({'msg': f'All Beacon nodes serve chain {chain_id}.'})

    with tqdm(
        total=epochs.slots_count + MAX_INCLUSION_DELAY,
        unit='slot',
        desc='Fetching blocks',
        disable=args.no_progress,
    ) as progress_bar:
        def on_slot_fetched() -> None:
            progress_bar.update(1)
            FETCHED_SLOTS_COUNT.inc()

        report = ParticipationAudit(pool, on_slot_fetched).execute(epochs)

    log_report(report)
    print(render_report(report))


def cli(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        main(args)
    except AUDIT_ERRORS as error:
        logger.error({'msg': 'Participation audit failed.', 'error': str(error)})
        return 1
    except ValueError as error:
        # Required variables are missing
        logger.error({'msg': 'Participation audit is misconfigured.', 'error': str(error)})
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(cli())
