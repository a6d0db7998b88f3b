"""IdentityResolver: decide whether an address may sign for an identity.

The owner path is authoritative: an address is authorized when it equals
the identity's current registry owner. Delegate authorization is an
extension seam. Pass a ``delegate_check`` coroutine function to accept
unexpired delegates by whatever matching rule the deployment needs;
without one, only the owner is authorized.
"""
from __future__ import annotations

import datetime
import logging
from typing import Awaitable, Callable, Optional

from ethr_did.did.normalize import ethr_address, is_ethr_identity, normalize_known_did
from ethr_did.registry.client import RegistryClient

logger = logging.getLogger(__name__)

#: ``(identity_address, candidate_address, at_time) -> authorized``
DelegateCheck = Callable[[str, str, datetime.datetime], Awaitable[bool]]


class IdentityResolver:
    """Registry-backed signer authority for token verification.

    Parameters
    ----------
    registry:
        Client used for owner lookups. Only read access is needed.
    delegate_check:
        Optional coroutine function consulted when the candidate is not the
        owner.
    """

    def __init__(
        self,
        registry: RegistryClient,
        delegate_check: Optional[DelegateCheck] = None,
    ) -> None:
        self._registry = registry
        self._delegate_check = delegate_check

    async def is_authorized_signer(
        self,
        identity: str,
        candidate_address: str,
        at_time: datetime.datetime | None = None,
    ) -> bool:
        """Return ``True`` if *candidate_address* may sign for *identity*.

        Parameters
        ----------
        identity:
            Identity in any format accepted by ``normalize_known_did``.
            Identities that are not ``did:ethr`` are never authorized.
        candidate_address:
            ``0x`` address recovered from a signature.
        at_time:
            Time at which delegations must still be valid; defaults to now.

        Raises
        ------
        RegistryCallError
            If the owner lookup fails.
        """
        did = normalize_known_did(identity)
        if not is_ethr_identity(did):
            logger.debug("Cannot resolve signer authority for non-ethr identity %s", did)
            return False

        owner = await self._registry.lookup_owner(did)
        if owner.lower() == candidate_address.lower():
            return True

        if self._delegate_check is None:
            return False
        at_time = at_time or datetime.datetime.now(datetime.timezone.utc)
        return await self._delegate_check(ethr_address(did), candidate_address, at_time)


__all__ = ["DelegateCheck", "IdentityResolver"]
