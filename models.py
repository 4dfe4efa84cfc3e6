from pydantic import BaseModel, ConfigDict, Field, model_validator

import config
from config import max_int_for
from obfuscation import Optimus


class OptimusSeed(BaseModel):
    """
    Storable form of an Optimus triple, e.g. for a secrets manager entry.
    The values are secret; the repr hides them.
    """
    model_config = ConfigDict(frozen=True)

    prime: int = Field(..., gt=2, repr=False)
    mod_inverse: int = Field(..., ge=1, repr=False)
    random: int = Field(..., ge=0, repr=False)
    bits: int = Field(default=config.DOMAIN_BITS, ge=2, le=64)

    @model_validator(mode='after')
    def check_domain(self):
        max_int = max_int_for(self.bits)
        if self.prime >= max_int or self.mod_inverse > max_int or self.random > max_int:
            raise ValueError(f"Seed values must fit the {self.bits}-bit domain")
        return self

    @classmethod
    def from_optimus(cls, optimus: Optimus) -> "OptimusSeed":
        return cls(
            prime=optimus.prime,
            mod_inverse=optimus.mod_inverse,
            random=optimus.random,
            bits=optimus.bits,
        )

    def to_optimus(self, verify: bool = True) -> Optimus:
        """Rebuilds the transform, re-verifying the prime unless told otherwise."""
        return Optimus(self.prime, self.mod_inverse, self.random, bits=self.bits, verify=verify)
