from dataclasses import dataclass
from typing import Protocol

from beacon_participation.types import (
    BlockRoot,
    CommitteeIndex,
    EpochNumber,
    SlotNumber,
    StateRoot,
    ValidatorIndex,
)
from beacon_participation.utils.dataclass import FromResponse, Nested


@dataclass
class BeaconSpecResponse(Nested, FromResponse):
    DEPOSIT_CHAIN_ID: int
    SLOTS_PER_EPOCH: int
    SECONDS_PER_SLOT: int


@dataclass
class BlockHeaderMessage(Nested, FromResponse):
    slot: SlotNumber
    proposer_index: ValidatorIndex
    parent_root: BlockRoot
    state_root: StateRoot
    body_root: str


@dataclass
class BlockHeader(Nested, FromResponse):
    message: BlockHeaderMessage
    signature: str


@dataclass
class BlockHeaderResponseData(Nested, FromResponse):
    # https://ethereum.github.io/beacon-APIs/#/Beacon/getBlockHeader
    root: BlockRoot
    canonical: bool
    header: BlockHeader


@dataclass
class Checkpoint(Nested, FromResponse):
    epoch: EpochNumber
    root: BlockRoot


@dataclass
class AttestationData(Nested, FromResponse):
    slot: SlotNumber
    index: CommitteeIndex
    beacon_block_root: BlockRoot
    source: Checkpoint
    target: Checkpoint


@dataclass
class BlockAttestationResponse(Nested, FromResponse):
    aggregation_bits: str
    data: AttestationData
    # Since Electra (EIP-7549) committee is set by committee_bits and data.index is 0
    committee_bits: str = ''


class BlockAttestation(Protocol):
    aggregation_bits: str
    committee_bits: str
    data: AttestationData


@dataclass
class SlotAttestationCommittee(Nested, FromResponse):
    # https://ethereum.github.io/beacon-APIs/#/Beacon/getEpochCommittees
    index: CommitteeIndex
    slot: SlotNumber
    validators: list[ValidatorIndex]


# Number of seats by (slot, committee index)
type CommitteeSizes = dict[tuple[SlotNumber, CommitteeIndex], int]


@dataclass
class BeaconBlockBody(Nested, FromResponse):
    # Execution payload and other operations are not decoded
    attestations: list[BlockAttestationResponse]


@dataclass
class BlockMessage(Nested, FromResponse):
    slot: SlotNumber
    proposer_index: ValidatorIndex
    parent_root: BlockRoot
    state_root: StateRoot
    body: BeaconBlockBody


@dataclass
class BlockDetailsResponse(Nested, FromResponse):
    # https://ethereum.github.io/beacon-APIs/#/Beacon/getBlockV2
    message: BlockMessage
    signature: str


@dataclass(frozen=True)
class Block:
    """Block observed by one of the Beacon nodes. Identity is the root."""
    root: BlockRoot
    slot: SlotNumber
    parent_root: BlockRoot
    attestations: tuple[BlockAttestation, ...]
