import logging
from typing import Iterable, Sequence

from beacon_participation.providers.consensus.types import Block
from beacon_participation.types import BlockRoot, SlotNumber

logger = logging.getLogger(__name__)


class EmptyChainError(Exception):
    pass


class ChainIntegrityError(Exception):
    pass


def index_by_root(blocks: Iterable[Block]) -> dict[BlockRoot, Block]:
    index: dict[BlockRoot, Block] = {}
    for block in blocks:
        known = index.get(block.root)
        if known is not None and known.slot != block.slot:
            raise ChainIntegrityError(f"Block {block.root} is reported for slots {known.slot} and {block.slot}")
        index[block.root] = block
    return index


def select_tip(blocks: Iterable[Block]) -> Block:
    """
    The highest observed block. Same slot forks are resolved by the smallest root,
    so the choice doesn't depend on the order blocks were received in.
    """
    return min(blocks, key=lambda block: (-block.slot, block.root))


def reconstruct_canonical_chain(blocks: Sequence[Block], from_slot: SlotNumber) -> list[Block]:
    """
    Walks parent roots back from the tip. Blocks not reachable from the tip
    (orphans, abandoned forks) are dropped. Returns blocks in ascending slot order.
    """
    if not blocks:
        raise EmptyChainError("No blocks observed, there is no tip to build the chain from")

    by_root = index_by_root(blocks)
    tip = select_tip(by_root.values())

    chain = [tip]
    current = tip
    while (parent := by_root.get(current.parent_root)) is not None:
        if parent.slot >= current.slot:
            raise ChainIntegrityError(
                f"Block {current.root} at slot {current.slot} has parent {parent.root} at slot {parent.slot}"
            )
        if parent.slot < from_slot:
            break
        chain.append(parent)
        current = parent
    chain.reverse()

    logger.info({
        "msg": f"Canonical chain of {len(chain)} blocks reconstructed",
        "tip_slot": tip.slot,
        "tip_root": tip.root,
        "first_slot": chain[0].slot,
        "discarded_blocks": len(by_root) - len(chain),
    })
    return chain
