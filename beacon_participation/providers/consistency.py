import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

logger = logging.getLogger(__name__)


class InconsistentProviders(Exception):
    pass


class NotHealthyProvider(Exception):
    pass


class ProviderConsistencyModule(ABC):
    """
    Checks that every configured provider is alive and all of them serve the same chain.
    Audit data from different chains can't be reconciled into one canonical chain.

    Methods must be implemented:
    def get_all_providers(self) -> [any]:
    def _get_chain_id_with_provider(self, int) -> int:
    """
    def check_providers_consistency(self) -> Optional[int]:
        chain_id = None

        for provider_index in range(len(self.get_all_providers())):
            try:
                curr_chain_id = self._get_chain_id_with_provider(provider_index)
            except Exception as error:
                raise NotHealthyProvider(f'Provider [{provider_index}] is not responding.') from error

            logger.debug({'msg': f'Provider [{provider_index}] serves chain {curr_chain_id}'})

            if chain_id is None:
                chain_id = curr_chain_id
            elif chain_id != curr_chain_id:
                raise InconsistentProviders(f'Different chain ids detected for {provider_index=}. '
                                            f'Expected {chain_id=}, got {curr_chain_id=}.')

        return chain_id

    @abstractmethod
    def get_all_providers(self) -> list[Any]:
        """Returns list of hosts or providers."""
        raise NotImplementedError("get_all_providers should be implemented")

    @abstractmethod
    def _get_chain_id_with_provider(self, provider_index: int) -> int:
        """Does a health check call and returns chain_id for current provider"""
        raise NotImplementedError("_get_chain_id_with_provider should be implemented")
