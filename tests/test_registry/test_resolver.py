"""Tests for IdentityResolver signer authorization."""
from __future__ import annotations

import datetime

import pytest

from ethr_did.errors import RegistryCallError, UnauthorizedSignerError
from ethr_did.jwt.token import create_token, verify_token
from ethr_did.registry.client import RegistryClient
from ethr_did.registry.resolver import IdentityResolver
from ethr_did.signer import KeyPairSigner

NOW = datetime.datetime(2026, 10, 19, 12, 0, tzinfo=datetime.timezone.utc)


class TestIsAuthorizedSigner:
    @pytest.mark.asyncio
    async def test_identity_is_its_own_signer(self, signer: KeyPairSigner, fake_rpc) -> None:
        resolver = IdentityResolver(RegistryClient(fake_rpc))
        assert await resolver.is_authorized_signer(signer.did, signer.address.lower()) is True

    @pytest.mark.asyncio
    async def test_bare_address_identity(self, signer: KeyPairSigner, fake_rpc) -> None:
        resolver = IdentityResolver(RegistryClient(fake_rpc))
        assert await resolver.is_authorized_signer(signer.address, signer.address) is True

    @pytest.mark.asyncio
    async def test_other_address_rejected(
        self, signer: KeyPairSigner, other_signer: KeyPairSigner, fake_rpc
    ) -> None:
        resolver = IdentityResolver(RegistryClient(fake_rpc))
        assert await resolver.is_authorized_signer(signer.did, other_signer.address) is False

    @pytest.mark.asyncio
    async def test_new_owner_authorized_after_transfer(
        self, signer: KeyPairSigner, other_signer: KeyPairSigner, make_rpc
    ) -> None:
        rpc = make_rpc(owners={signer.address: other_signer.address})
        resolver = IdentityResolver(RegistryClient(rpc))
        assert await resolver.is_authorized_signer(signer.did, other_signer.address) is True
        assert await resolver.is_authorized_signer(signer.did, signer.address) is False

    @pytest.mark.asyncio
    async def test_non_ethr_identity_never_authorized(self, signer: KeyPairSigner, fake_rpc) -> None:
        resolver = IdentityResolver(RegistryClient(fake_rpc))
        did = "did:uport:2nQtiQG6Cgm1GYTBaaKAgr76uY7iSexUkqX"
        assert await resolver.is_authorized_signer(did, signer.address) is False
        assert fake_rpc.requests == []

    @pytest.mark.asyncio
    async def test_lookup_failure_propagates(self, signer: KeyPairSigner, fake_rpc) -> None:
        fake_rpc.failures["eth_call"] = ConnectionError("down")
        resolver = IdentityResolver(RegistryClient(fake_rpc))
        with pytest.raises(RegistryCallError):
            await resolver.is_authorized_signer(signer.did, signer.address)


class TestDelegateCheck:
    @pytest.mark.asyncio
    async def test_consulted_for_non_owner(
        self, signer: KeyPairSigner, other_signer: KeyPairSigner, fake_rpc
    ) -> None:
        calls: list[tuple[str, str, datetime.datetime]] = []

        async def allow_all(identity: str, candidate: str, at_time: datetime.datetime) -> bool:
            calls.append((identity, candidate, at_time))
            return True

        resolver = IdentityResolver(RegistryClient(fake_rpc), delegate_check=allow_all)
        assert await resolver.is_authorized_signer(signer.did, other_signer.address, NOW) is True
        assert calls == [(signer.address, other_signer.address, NOW)]

    @pytest.mark.asyncio
    async def test_not_consulted_for_owner(self, signer: KeyPairSigner, fake_rpc) -> None:
        async def forbid(identity: str, candidate: str, at_time: datetime.datetime) -> bool:
            raise AssertionError("delegate check must not run for the owner")

        resolver = IdentityResolver(RegistryClient(fake_rpc), delegate_check=forbid)
        assert await resolver.is_authorized_signer(signer.did, signer.address) is True

    @pytest.mark.asyncio
    async def test_default_time_is_now(
        self, signer: KeyPairSigner, other_signer: KeyPairSigner, fake_rpc
    ) -> None:
        seen: list[datetime.datetime] = []

        async def record(identity: str, candidate: str, at_time: datetime.datetime) -> bool:
            seen.append(at_time)
            return False

        resolver = IdentityResolver(RegistryClient(fake_rpc), delegate_check=record)
        assert await resolver.is_authorized_signer(signer.did, other_signer.address) is False
        assert seen[0].tzinfo is not None


class TestVerifyWithRegistry:
    @pytest.mark.asyncio
    async def test_token_from_owner_verifies(self, signer: KeyPairSigner, fake_rpc) -> None:
        resolver = IdentityResolver(RegistryClient(fake_rpc))
        token = create_token({"claim": 1}, issuer=signer.did, signer=signer, now=NOW)
        payload = await verify_token(token, resolver, now=NOW)
        assert payload["claim"] == 1

    @pytest.mark.asyncio
    async def test_token_from_previous_owner_rejected(
        self, signer: KeyPairSigner, other_signer: KeyPairSigner, make_rpc
    ) -> None:
        rpc = make_rpc(owners={signer.address: other_signer.address})
        resolver = IdentityResolver(RegistryClient(rpc))
        token = create_token({}, issuer=signer.did, signer=signer, now=NOW)
        with pytest.raises(UnauthorizedSignerError):
            await verify_token(token, resolver, now=NOW)
