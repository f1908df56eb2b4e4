from typing import NewType

from eth_typing import HexStr


EpochNumber = NewType('EpochNumber', int)
SlotNumber = NewType('SlotNumber', int)
BlockRoot = NewType('BlockRoot', HexStr)
StateRoot = NewType('StateRoot', HexStr)

CommitteeIndex = NewType('CommitteeIndex', int)
ValidatorIndex = NewType('ValidatorIndex', int)
