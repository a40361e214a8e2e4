from decimal import Decimal
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from solana.rpc.commitment import Confirmed, Finalized, Processed
from solders.pubkey import Pubkey

from stake.actions import StakeAccountMode, StakeTransactionOptions, TransactionVersion
from stake.constants import MAX_SEED_LEN

# "<prefix>-" followed by 16 hex characters must fit in a seed
MAX_SEED_PREFIX_LEN: int = MAX_SEED_LEN - 17


class Settings(BaseSettings):

    PROJECT_NAME: str = "Stake Blink"
    LOG_LEVEL: str = "INFO"

    RPC_URL: str = "https://api.mainnet-beta.solana.com"
    RPC_TIMEOUT: float = 10.0
    COMMITMENT: str = "finalized"

    VALIDATOR_VOTE_ACCOUNT: str = "BeSov1og3sEYyH9JY3ap7QcQDvVX8f4sugfNPf9YLkcV"
    VALIDATOR_NAME: str = "Yonta Labs"

    ACTION_PATH: str = "/api/actions/stake-action"
    ACTION_PAGE_PATH: str = "/stake"
    TITLE: str = "Stake with Yonta Labs"
    LABEL: str = "Stake with Yonta"
    DESCRIPTION: str = (
        "Delegate your SOL directly to the Yonta Labs validator: 0% commission, "
        "Jito MEV rewards, independent and veteran-owned, community-first Solana infrastructure."
    )
    ICON_PATH: str = "/logo.png"
    PRESET_AMOUNTS: List[Decimal] = [Decimal("1"), Decimal("5")]
    MIN_AMOUNT: Decimal = Decimal("0.01")
    DEFAULT_AMOUNT: Decimal = Decimal("1")

    # CAIP-2 id of Solana mainnet
    BLOCKCHAIN_ID: str = "solana:5eykt4UsFv8P8NJdTREpY1vzqKqZKvdp"
    ACTION_VERSION: str = "2.4"

    STAKE_ACCOUNT_MODE: StakeAccountMode = StakeAccountMode.SEED
    SEED_PREFIX: str = "stake"
    TRANSACTION_VERSION: TransactionVersion = TransactionVersion.LEGACY

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")

    @field_validator("VALIDATOR_VOTE_ACCOUNT")
    def check_vote_account(cls, v: str) -> str:
        Pubkey.from_string(v)
        return v

    @field_validator("COMMITMENT")
    def check_commitment(cls, v: str) -> str:
        if v not in (Processed, Confirmed, Finalized):
            raise ValueError(f"COMMITMENT must be one of {Processed}, {Confirmed}, {Finalized}")
        return v

    @field_validator("SEED_PREFIX")
    def check_seed_prefix(cls, v: str) -> str:
        if len(v) > MAX_SEED_PREFIX_LEN:
            raise ValueError(f"SEED_PREFIX must be at most {MAX_SEED_PREFIX_LEN} characters")
        return v

    @field_validator("ACTION_PATH", "ACTION_PAGE_PATH", "ICON_PATH")
    def check_path(cls, v: str) -> str:
        if not v.startswith("/") and "://" not in v:
            raise ValueError("must be an absolute path or URL")
        return v

    @property
    def vote_account(self) -> Pubkey:
        return Pubkey.from_string(self.VALIDATOR_VOTE_ACCOUNT)

    @property
    def stake_options(self) -> StakeTransactionOptions:
        return StakeTransactionOptions(
            account_mode=self.STAKE_ACCOUNT_MODE,
            seed_prefix=self.SEED_PREFIX,
            version=self.TRANSACTION_VERSION,
            commitment=self.COMMITMENT,
            timeout=self.RPC_TIMEOUT,
        )

    @property
    def response_headers(self) -> dict:
        """Headers sent with every Action response, preflights included."""
        return {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET,POST,PUT,OPTIONS",
            "Access-Control-Allow-Headers": (
                "Content-Type, Authorization, Content-Encoding, Accept-Encoding, "
                "X-Accept-Action-Version, X-Accept-Blockchain-Ids"
            ),
            "Access-Control-Expose-Headers": "X-Action-Version, X-Blockchain-Ids",
            "X-Blockchain-Ids": self.BLOCKCHAIN_ID,
            "X-Action-Version": self.ACTION_VERSION,
        }
