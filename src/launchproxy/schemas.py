"""Request and response models for token launches."""

import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

IdentityType = Literal["x", "farcaster", "ens", "wallet"]


def is_wallet_address(value: Optional[str]) -> bool:
    """Check for a 20-byte hex address."""
    return bool(value) and bool(ADDRESS_RE.match(value))


class LaunchRequest(BaseModel):
    """Token launch parameters supplied by the requester."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=50)
    symbol: Optional[str] = Field(default=None, max_length=16, pattern=r"^[a-zA-Z0-9]+$")
    image: Optional[str] = None
    tweet: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    launcher_type: IdentityType = Field(..., alias="launcherType")
    launcher: str = Field(..., min_length=1)
    fee_type: IdentityType = Field(..., alias="feeType")
    fee: str = Field(..., min_length=1)
    tax_type: Literal["dynamic", "static"] = Field(default="dynamic", alias="taxType")
    tax_percentage: int = Field(default=10, ge=0, le=10, alias="taxPercentage")
    reward_recipient: Optional[str] = Field(default=None, alias="rewardRecipient")
    vanity_suffix: Optional[str] = Field(
        default=None, alias="vanitySuffix", pattern=r"^[a-fA-F0-9]{1,8}$"
    )

    @property
    def resolved_symbol(self) -> str:
        """Explicit symbol, or the first five characters of the name."""
        return self.symbol or self.name[:5].upper()

    def reward_recipient_for(self, requester_address: str) -> str:
        """Requester-controlled address that receives pool rewards.

        A wallet-typed fee recipient or an explicit rewardRecipient wins;
        anything else resolves to the requester.
        """
        if is_wallet_address(self.reward_recipient):
            return self.reward_recipient
        if self.fee_type == "wallet" and is_wallet_address(self.fee):
            return self.fee
        return requester_address


class LaunchResponse(BaseModel):
    """Launch outcome returned to the caller."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: Optional[str] = None
    tx_hash: Optional[str] = Field(default=None, alias="txHash")
    payment_tx_hash: Optional[str] = Field(default=None, alias="paymentTxHash")
    token_address: Optional[str] = Field(default=None, alias="tokenAddress")
    deployed_via_fallback: Optional[bool] = Field(default=None, alias="deployedViaFallback")
    burner_address: Optional[str] = Field(default=None, alias="burnerAddress")
    error: Optional[str] = None
