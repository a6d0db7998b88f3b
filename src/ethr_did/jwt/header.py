"""JwtHeader: the standard token header."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from ethr_did.jwt.signature import ES256K, SUPPORTED_ALGORITHMS


class JwtHeader(BaseModel):
    """Token header ``{"typ": "JWT", "alg": ...}``.

    Unknown header keys are ignored when parsing.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    typ: str = "JWT"
    alg: str = ES256K

    @field_validator("alg")
    @classmethod
    def _check_alg(cls, value: str) -> str:
        if value not in SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"Unsupported alg {value!r}. Supported: {sorted(SUPPORTED_ALGORITHMS)}"
            )
        return value

    def to_dict(self) -> dict[str, str]:
        """Return the header as an ordered ``typ``/``alg`` dict."""
        return {"typ": self.typ, "alg": self.alg}


__all__ = ["JwtHeader"]
