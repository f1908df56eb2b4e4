from dataclasses import dataclass
from typing import Iterable, TypeVar, cast

from beacon_participation.constants import MAX_EPOCHS_SPAN, SLOTS_PER_EPOCH
from beacon_participation.types import EpochNumber, SlotNumber

T = TypeVar("T", bound=int)


class InvalidEpochRange(ValueError):
    pass


def sequence(start: T, stop: T) -> Iterable[T]:
    """Returns inclusive range object [start;stop]"""
    if start > stop:
        raise ValueError(f"{start=} > {stop=}")
    return cast(Iterable, range(start, stop + 1))


def epoch_first_slot(epoch: EpochNumber) -> SlotNumber:
    return SlotNumber(epoch * SLOTS_PER_EPOCH)


def epoch_last_slot(epoch: EpochNumber) -> SlotNumber:
    return SlotNumber((epoch + 1) * SLOTS_PER_EPOCH - 1)


def slot_to_epoch(slot: SlotNumber) -> EpochNumber:
    return EpochNumber(slot // SLOTS_PER_EPOCH)


def slot_position_in_epoch(slot: SlotNumber) -> int:
    return slot % SLOTS_PER_EPOCH


@dataclass(frozen=True)
class EpochRange:
    # Both borders are inclusive
    from_epoch: EpochNumber
    to_epoch: EpochNumber

    @property
    def from_slot(self) -> SlotNumber:
        return epoch_first_slot(self.from_epoch)

    @property
    def to_slot(self) -> SlotNumber:
        return epoch_last_slot(self.to_epoch)

    @property
    def epochs_count(self) -> int:
        return self.to_epoch - self.from_epoch + 1

    @property
    def slots_count(self) -> int:
        return self.to_slot - self.from_slot + 1

    def __str__(self) -> str:
        return f'{self.from_epoch}-{self.to_epoch}'


def parse_epoch_range(value: str, max_span: int = MAX_EPOCHS_SPAN) -> EpochRange:
    """
    Parse epochs window given as a single epoch "N" or an inclusive range "A-B".
    """
    parts = value.strip().split('-')
    if len(parts) not in (1, 2):
        raise InvalidEpochRange(f'Unexpected epochs format: "{value}". Expected "N" or "A-B".')

    try:
        epochs = [EpochNumber(int(part)) for part in parts]
    except ValueError as error:
        raise InvalidEpochRange(f'Unexpected epochs format: "{value}". Expected "N" or "A-B".') from error

    from_epoch, to_epoch = epochs[0], epochs[-1]

    if from_epoch < 0:
        raise InvalidEpochRange(f'Epoch should not be negative, got {from_epoch=}')
    if from_epoch > to_epoch:
        raise InvalidEpochRange(f'Left border epoch should be less or equal right border epoch: {from_epoch=} > {to_epoch=}')
    if to_epoch - from_epoch > max_span:
        raise InvalidEpochRange(f'Epochs range is too wide: {to_epoch - from_epoch} > {max_span} epochs')

    return EpochRange(from_epoch, to_epoch)
