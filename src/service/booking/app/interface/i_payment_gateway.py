from abc import ABC, abstractmethod
from typing import Mapping, Optional

from src.service.booking.app.dto.provider_payment_result import ProviderPaymentResult
from src.service.booking.domain.entity.payment_transaction_entity import PaymentTransaction


class IPaymentGateway(ABC):
    @abstractmethod
    async def create_transaction(
        self, *, amount: int, bank_code: str, client_ip: str = '127.0.0.1'
    ) -> PaymentTransaction:
        """
        Open a transaction and build the signed redirect URL.

        Raises:
            ValidationError: amount is not a positive integer
        """
        pass

    @abstractmethod
    async def query_transaction(
        self, *, transaction: PaymentTransaction, client_ip: str = '127.0.0.1'
    ) -> Optional[ProviderPaymentResult]:
        """
        Ask the provider for the result of a transaction.

        Returns:
            None while the provider has no final result for it

        Raises:
            GatewayError: provider rejected the query, answered with a bad
                signature, or transport failed twice
        """
        pass

    @abstractmethod
    def verify_result_signature(self, *, params: Mapping[str, str]) -> bool:
        """Check the provider signature on a return redirect or callback."""
        pass

    async def aclose(self) -> None:
        """Release transport resources on shutdown."""
        return None
