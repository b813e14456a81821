"""Token protocols — collateral asset transfers and the stable unit."""
from typing import Hashable, Protocol


class CollateralToken(Protocol):
    """Transfer interface of a collateral asset.

    A ``False`` return means the transfer did not happen.
    """

    def balance_of(self, account: Hashable) -> int: ...

    async def transfer(self, sender: Hashable, recipient: Hashable, amount: int) -> bool: ...

    async def transfer_from(
        self, sender: Hashable, recipient: Hashable, amount: int
    ) -> bool: ...


class StableToken(CollateralToken, Protocol):
    """Stable unit; the engine holds its mint authority."""

    async def mint(self, account: Hashable, amount: int) -> bool: ...

    async def burn(self, holder: Hashable, amount: int) -> bool: ...
