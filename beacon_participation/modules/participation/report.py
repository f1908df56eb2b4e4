import logging
from typing import Sequence

from beacon_participation.modules.participation.types import ParticipationReport, ParticipationStats

logger = logging.getLogger(__name__)


def format_percent(value: float | None) -> str:
    if value is None:
        return "n/a"
    return f"{value * 100:.2f}%"


def format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = [max(len(str(cell)) for cell in column) for column in zip(headers, *rows)]

    def line(cells: Sequence[str]) -> str:
        return " | ".join(str(cell).rjust(width) for cell, width in zip(cells, widths))

    separator = "-+-".join("-" * width for width in widths)
    return "\n".join([line(headers), separator, *(line(row) for row in rows)])


def _stats_row(stats: ParticipationStats) -> list[str]:
    return [
        str(stats.assigned),
        str(stats.executed),
        format_percent(stats.rate),
        format_percent(stats.effectiveness),
    ]


def render_report(report: ParticipationReport) -> str:
    stats_headers = ["Assigned", "Executed", "Rate", "Effectiveness"]
    sections = [
        (
            "Slots",
            format_table(
                ["Slot", *stats_headers],
                [[str(position), *_stats_row(stats)] for position, stats in enumerate(report.by_epoch_position)],
            ),
        ),
        (
            "Timings",
            format_table(
                ["FetchBlocks", "ReconstructChain", "AggregateParticipation"],
                [[
                    f"{report.timings.fetch_blocks:.2f}s",
                    f"{report.timings.reconstruct_chain:.2f}s",
                    f"{report.timings.aggregate_participation:.2f}s",
                ]],
            ),
        ),
        (
            "Scope",
            format_table(
                [f"{report.epochs.epochs_count} Epochs", "Observed Blocks", "Canonical Blocks", "Proposal Rate"],
                [[
                    f"{report.epochs.from_epoch}-{report.epochs.to_epoch}",
                    str(report.observed_blocks),
                    str(report.canonical_blocks),
                    format_percent(report.proposal_rate),
                ]],
            ),
        ),
        ("Attestations", format_table(stats_headers, [_stats_row(report.total)])),
    ]
    return "\n\n".join(f"{title}\n{table}" for title, table in sections) + "\n"


def log_report(report: ParticipationReport) -> None:
    logger.info({
        "msg": "Attestation participation report",
        "epochs": str(report.epochs),
        "assigned": report.total.assigned,
        "executed": report.total.executed,
        "inclusion_delay": report.total.inclusion_delay,
        "participation_rate": report.total.rate,
        "effectiveness": report.total.effectiveness,
        "proposal_rate": report.proposal_rate,
        "observed_blocks": report.observed_blocks,
        "canonical_blocks": report.canonical_blocks,
        "timings": report.timings,
    })
