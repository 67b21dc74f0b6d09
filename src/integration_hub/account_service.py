from __future__ import annotations

import logging

from .domain import AccountStatus, AccountType
from .errors import NotFoundError
from .models import AccountView
from .providers.protocols import PositionProvider

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, *, positions: PositionProvider) -> None:
        self._positions = positions

    async def list_accounts(
        self,
        client_id: str,
        *,
        status: AccountStatus | None = None,
        account_type: AccountType | None = None,
    ) -> list[AccountView]:
        """Accounts owned by ``client_id``, optionally filtered.

        A client with no accounts is reported exactly like an unknown client
        (NotFoundError); the OMS gives no way to tell the two apart. Filters
        that match nothing return an empty list.
        """

        accounts = await self._positions.get_accounts_by_client(client_id)
        if not accounts:
            raise NotFoundError("client", client_id)

        out = [
            AccountView.from_domain(a)
            for a in accounts
            if (status is None or a.status == status)
            and (account_type is None or a.account_type == account_type)
        ]

        logger.debug(
            "accounts listed client=%s total=%d returned=%d",
            client_id,
            len(accounts),
            len(out),
        )
        return out
