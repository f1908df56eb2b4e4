import logging
from http import HTTPStatus

from beacon_participation.metrics.prometheus.basic import CL_REQUESTS_DURATION
from beacon_participation.providers.consensus.types import (
    BeaconSpecResponse,
    Block,
    BlockDetailsResponse,
    BlockHeaderResponseData,
    SlotAttestationCommittee,
)
from beacon_participation.providers.http_provider import HTTPProvider, NotOkResponse, data_is_dict, data_is_list
from beacon_participation.types import BlockRoot, EpochNumber, SlotNumber
from beacon_participation.utils.types import normalize_root

logger = logging.getLogger(__name__)


class ConsensusClientError(NotOkResponse):
    pass


class ConsensusClient(HTTPProvider):
    """
    API specifications can be found here
    https://ethereum.github.io/beacon-APIs/

    block_id
    Block identifier. Can be one of: "head", "genesis", "finalized", <slot>, <hex encoded blockRoot with 0x prefix>.
    """

    PROVIDER_EXCEPTION = ConsensusClientError
    PROMETHEUS_HISTOGRAM = CL_REQUESTS_DURATION

    API_GET_BLOCK_HEADER = 'eth/v1/beacon/headers/{}'
    API_GET_BLOCK_DETAILS = 'eth/v2/beacon/blocks/{}'
    API_GET_SPEC = 'eth/v1/config/spec'
    API_GET_ATTESTATION_COMMITTEES = 'eth/v1/beacon/states/{}/committees'

    def get_config_spec(self) -> BeaconSpecResponse:
        """Spec: https://ethereum.github.io/beacon-APIs/#/Config/getSpec"""
        data, _ = self._get(self.API_GET_SPEC, retval_validator=data_is_dict)
        return BeaconSpecResponse.from_response(**data)

    def get_block_header(self, block_id: SlotNumber | BlockRoot) -> BlockHeaderResponseData:
        """Spec: https://ethereum.github.io/beacon-APIs/#/Beacon/getBlockHeader"""
        data, _ = self._get(
            self.API_GET_BLOCK_HEADER,
            path_params=(block_id,),
            force_raise=self.__raise_last_missed_slot_error,
            retval_validator=data_is_dict,
        )
        return BlockHeaderResponseData.from_response(**data)

    def get_block_details(self, block_id: SlotNumber | BlockRoot) -> BlockDetailsResponse:
        """Spec: https://ethereum.github.io/beacon-APIs/#/Beacon/getBlockV2"""
        data, _ = self._get(
            self.API_GET_BLOCK_DETAILS,
            path_params=(block_id,),
            force_raise=self.__raise_last_missed_slot_error,
            retval_validator=data_is_dict,
        )
        return BlockDetailsResponse.from_response(**data)

    def get_attestation_committees(
        self,
        state_id: SlotNumber | str,
        epoch: EpochNumber,
    ) -> list[SlotAttestationCommittee]:
        """Spec: https://ethereum.github.io/beacon-APIs/#/Beacon/getEpochCommittees"""
        data, _ = self._get(
            self.API_GET_ATTESTATION_COMMITTEES,
            path_params=(state_id,),
            query_params={'epoch': epoch},
            retval_validator=data_is_list,
        )
        return [SlotAttestationCommittee.from_response(**committee) for committee in data]

    def get_block(self, slot: SlotNumber) -> Block | None:
        """
        Returns the block the node has for the slot or None if the slot is empty.

        Header gives the block root. Body is requested by that root, so both
        responses describe the same block even if the node switches forks in between.
        """
        try:
            header = self.get_block_header(slot)
        except NotOkResponse as error:
            if error.status == HTTPStatus.NOT_FOUND:
                logger.debug({'msg': f'No block found for slot {slot}'})
                return None
            raise

        message = header.header.message
        details = self.get_block_details(header.root)

        if details.message.slot != message.slot or details.message.parent_root != message.parent_root:
            raise ValueError(
                f'Block {header.root} body does not match its header: '
                f'{details.message.slot=} {message.slot=}'
            )

        return Block(
            root=normalize_root(header.root),
            slot=message.slot,
            parent_root=normalize_root(message.parent_root),
            attestations=tuple(details.message.body.attestations),
        )

    def __raise_last_missed_slot_error(self, errors: list[Exception]) -> Exception | None:
        """
        Prioritize NotOkResponse before other exceptions (ConnectionError, TimeoutError).
        If status is 404 slot is missed and this should be handled correctly.
        """
        if len(errors) == len(self.hosts):
            for error in errors:
                if isinstance(error, NotOkResponse) and error.status == HTTPStatus.NOT_FOUND:
                    return error

        return None
