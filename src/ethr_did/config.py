"""Runtime configuration for registry access and token defaults.

Values are read from ``ETHR_DID_*`` environment variables or a ``.env`` file,
for example::

    ETHR_DID_RPC_URL=https://mainnet.infura.io/v3/<project>
    ETHR_DID_CHAIN_ID=1
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

#: EIP-1056 registry deployment shared by mainnet and the public testnets.
DEFAULT_REGISTRY_ADDRESS: str = "0xdca7ef03e98e0dc2b855be647c39abe984fcf21b"
DEFAULT_GAS_LIMIT: int = 70_000


class RegistrySettings(BaseSettings):
    """Settings for the ethr-did registry client and CLI.

    Parameters
    ----------
    rpc_url:
        JSON-RPC endpoint of an Ethereum node.
    registry_address:
        Address of the EIP-1056 registry contract.
    chain_id:
        EIP-155 chain id used when signing transactions; ``None`` signs
        without replay protection.
    gas_limit:
        Fixed gas limit for registry writes.
    request_timeout:
        Per-request RPC timeout in seconds.
    token_expires_in:
        Default token lifetime in seconds.
    log_level:
        Logging level name for the CLI.
    """

    model_config = SettingsConfigDict(
        env_prefix="ETHR_DID_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    rpc_url: str = "http://127.0.0.1:8545"
    registry_address: str = DEFAULT_REGISTRY_ADDRESS
    chain_id: Optional[int] = None
    gas_limit: int = Field(default=DEFAULT_GAS_LIMIT, gt=21_000)
    request_timeout: float = Field(default=30.0, gt=0)
    token_expires_in: int = Field(default=300, gt=0)
    log_level: str = "WARNING"

    @field_validator("registry_address")
    @classmethod
    def _check_registry_address(cls, value: str) -> str:
        digits = value[2:] if value[:2] in ("0x", "0X") else value
        if len(digits) != 40 or any(c not in "0123456789abcdefABCDEF" for c in digits):
            raise ValueError(f"registry_address {value!r} is not a 20-byte hex address")
        return "0x" + digits

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache()
def get_settings() -> RegistrySettings:
    return RegistrySettings()


__all__ = ["DEFAULT_GAS_LIMIT", "DEFAULT_REGISTRY_ADDRESS", "RegistrySettings", "get_settings"]
