# beacon_sdk/accounts.py
# SPDX-License-Identifier: Apache-2.0
"""
Account bookkeeping.

AccountManager
    Every account ever granted, persisted as a list of dicts under
    ``StorageKey.ACCOUNTS`` and looked up by account identifier.

AccountSessionManager
    Owns the single active-account slot. Only the active account's identifier
    is persisted; on startup ``restore()`` resolves it back to the full record
    through the AccountManager.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .errors import InvalidInput
from .events import BeaconEvent, EventBus
from .messages import AccountInfo
from .storage import Storage, StorageKey

LOG = logging.getLogger(__name__)


class AccountManager:

    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    async def get_accounts(self) -> List[AccountInfo]:
        raw = await self._storage.get(StorageKey.ACCOUNTS) or []
        return [AccountInfo.from_dict(item) for item in raw]

    async def get_account(self, account_identifier: str) -> Optional[AccountInfo]:
        for account in await self.get_accounts():
            if account.account_identifier == account_identifier:
                return account
        return None

    async def add_account(self, account: AccountInfo) -> None:
        """Store ``account``, replacing any record with the same identifier."""
        accounts = [
            a for a in await self.get_accounts()
            if a.account_identifier != account.account_identifier
        ]
        accounts.append(account)
        await self._save(accounts)

    async def remove_account(self, account_identifier: str) -> None:
        accounts = await self.get_accounts()
        remaining = [a for a in accounts if a.account_identifier != account_identifier]
        if len(remaining) != len(accounts):
            await self._save(remaining)

    async def remove_all_accounts(self) -> None:
        await self._storage.delete(StorageKey.ACCOUNTS)

    async def _save(self, accounts: List[AccountInfo]) -> None:
        await self._storage.set(StorageKey.ACCOUNTS, [a.to_dict() for a in accounts])


class AccountSessionManager:

    def __init__(self, storage: Storage, accounts: AccountManager, events: EventBus) -> None:
        self._storage = storage
        self._accounts = accounts
        self._events = events
        self._active: Optional[AccountInfo] = None

    def get_active_account(self) -> Optional[AccountInfo]:
        return self._active

    async def set_active_account(self, account: Optional[AccountInfo]) -> None:
        """
        Make ``account`` the active session.

        ``None`` is ignored: switching away from an account takes another
        account (or an explicit ``clear_active_account``).
        """
        if account is None:
            return
        if not account.scopes:
            raise InvalidInput(
                "an account without granted scopes cannot be active",
                details={"account_identifier": account.account_identifier},
            )

        self._active = account
        await self._storage.set(StorageKey.ACTIVE_ACCOUNT, account.account_identifier)
        LOG.info("active account set to %s", account.address)
        self._events.emit(BeaconEvent.ACTIVE_ACCOUNT_SET, account)

    async def clear_active_account(self) -> None:
        """Log out: drop the active session and its persisted pointer."""
        self._active = None
        await self._storage.delete(StorageKey.ACTIVE_ACCOUNT)

    async def restore(self) -> Optional[AccountInfo]:
        """
        Reinstall the persisted active account, if any.

        Never raises: a missing, stale or corrupt entry must not stop the
        client from starting.
        """
        try:
            identifier = await self._storage.get(StorageKey.ACTIVE_ACCOUNT)
            if not identifier:
                return None
            account = await self._accounts.get_account(identifier)
            if account is None:
                LOG.warning("persisted active account %s not found in accounts", identifier)
                return None
            await self.set_active_account(account)
            return account
        except Exception:  # noqa: BLE001
            LOG.exception("failed to restore active account")
            return None


__all__ = ["AccountManager", "AccountSessionManager"]
