"""Builds unsigned stake-delegation transactions for a wallet to sign."""

import asyncio
import base64
import logging
import math
import secrets
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Tuple, Union

import httpx
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message, MessageV0
from solders.null_signer import NullSigner
from solders.pubkey import Pubkey
from solders.transaction import Transaction, VersionedTransaction
import solders.system_program as sys
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Finalized
from solana.rpc.core import RPCException

from stake.constants import LAMPORTS_PER_SOL, MAX_LAMPORTS, MAX_SEED_LEN, STAKE_LEN, STAKE_PROGRAM_ID
from stake.errors import InvalidAddress, InvalidAmount, NetworkUnavailable, RpcError
from stake.state import Authorized, Lockup
import stake.instructions as st

logger = logging.getLogger(__name__)

SolAmount = Union[Decimal, float, int, str]

MAX_SOL = Decimal(MAX_LAMPORTS) / LAMPORTS_PER_SOL


class StakeAccountMode(str, Enum):
    """How the new stake account gets its address."""

    SEED = "seed"
    """Derived from the staker, a random seed and the stake program; no extra signer."""
    KEYPAIR = "keypair"
    """Fresh ephemeral keypair that co-signs the transaction."""


class TransactionVersion(str, Enum):
    LEGACY = "legacy"
    V0 = "v0"


class StakeTransactionOptions(NamedTuple):
    """Knobs for building a stake transaction."""

    account_mode: StakeAccountMode = StakeAccountMode.SEED
    seed_prefix: str = "stake"
    version: TransactionVersion = TransactionVersion.LEGACY
    commitment: Commitment = Finalized
    timeout: float = 10.0
    """Seconds allowed for the RPC round trips of one build."""
    random_bytes: Callable[[int], bytes] = secrets.token_bytes
    """Source of randomness for seeds and ephemeral keys."""


class StakeTransaction(NamedTuple):
    """An assembled stake transaction still missing the staker's signature."""

    transaction: Union[Transaction, VersionedTransaction]
    instructions: List[Instruction]
    staker: Pubkey
    stake_account: Pubkey
    lamports: int
    """Lamports moved into the stake account, rent reserve included."""
    seed: Optional[str] = None

    def serialize(self) -> str:
        """Wire bytes of the transaction, base64-encoded."""
        return base64.b64encode(bytes(self.transaction)).decode("ascii")


def parse_sol_amount(value: SolAmount) -> Decimal:
    """Parses a SOL amount, rejecting anything not finite and positive."""
    if isinstance(value, bool):
        raise InvalidAmount(f"Invalid SOL amount: {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidAmount(f"Invalid SOL amount: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidAmount(f"Invalid SOL amount: {value!r}") from e
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"Invalid SOL amount: {value!r}")
    return amount


def sol_to_lamports(amount: Decimal) -> int:
    """Converts SOL to lamports, rounding half up."""
    return int((amount * LAMPORTS_PER_SOL).to_integral_value(rounding=ROUND_HALF_UP))


def format_sol(amount: Decimal) -> str:
    """Plain decimal notation without trailing zeros, e.g. `5` or `0.25`."""
    return format(amount.normalize(), "f")


def parse_address(address: Union[Pubkey, str]) -> Pubkey:
    if isinstance(address, Pubkey):
        return address
    try:
        return Pubkey.from_string(address.strip())
    except (ValueError, AttributeError) as e:
        raise InvalidAddress(f"Invalid wallet address: {address!r}") from e


def new_seed(prefix: str, random_bytes: Callable[[int], bytes]) -> str:
    seed = f"{prefix}-{random_bytes(8).hex()}"
    if len(seed) > MAX_SEED_LEN:
        raise ValueError(f"Seed prefix {prefix!r} is too long")
    return seed


async def fetch_network_state(
    client: AsyncClient, commitment: Commitment, timeout: float
) -> Tuple[Hash, int]:
    """Fetches a recent blockhash and the stake-account rent exemption.

    Both queries run concurrently; when one fails the other is cancelled.
    """
    tasks = [
        asyncio.ensure_future(client.get_latest_blockhash(commitment)),
        asyncio.ensure_future(client.get_minimum_balance_for_rent_exemption(STAKE_LEN)),
    ]
    try:
        blockhash_resp, rent_resp = await asyncio.wait_for(asyncio.gather(*tasks), timeout)
    except asyncio.TimeoutError as e:
        raise NetworkUnavailable(f"RPC node did not answer within {timeout} seconds") from e
    except (SolanaRpcException, httpx.HTTPError) as e:
        raise NetworkUnavailable(f"RPC node unreachable: {e}") from e
    except RPCException as e:
        raise RpcError(f"RPC node returned an error: {e}") from e
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
    return blockhash_resp.value.blockhash, rent_resp.value


def stake_instructions(
    staker: Pubkey, vote: Pubkey, stake: Pubkey, lamports: int, seed: Optional[str]
) -> List[Instruction]:
    """Create, initialize and delegate a stake account, in that order."""
    if seed is not None:
        create = sys.create_account_with_seed(
            sys.CreateAccountWithSeedParams(
                from_pubkey=staker,
                to_pubkey=stake,
                base=staker,
                seed=seed,
                lamports=lamports,
                space=STAKE_LEN,
                owner=STAKE_PROGRAM_ID,
            )
        )
    else:
        create = sys.create_account(
            sys.CreateAccountParams(
                from_pubkey=staker,
                to_pubkey=stake,
                lamports=lamports,
                space=STAKE_LEN,
                owner=STAKE_PROGRAM_ID,
            )
        )
    return [
        create,
        st.initialize(
            st.InitializeParams(
                stake=stake,
                authorized=Authorized(
                    staker=staker,
                    withdrawer=staker,
                ),
                lockup=Lockup.none(),
            )
        ),
        st.delegate_stake(
            st.DelegateStakeParams(
                stake=stake,
                vote=vote,
                staker=staker,
            )
        ),
    ]


def assemble(
    instructions: List[Instruction], staker: Pubkey, blockhash: Hash,
    stake_keypair: Optional[Keypair], version: TransactionVersion
) -> Union[Transaction, VersionedTransaction]:
    """Compiles the instructions with the staker as fee payer, leaving the staker's signature empty."""
    if version == TransactionVersion.V0:
        message = MessageV0.try_compile(
            payer=staker,
            instructions=instructions,
            address_lookup_table_accounts=[],
            recent_blockhash=blockhash,
        )
        signers = [NullSigner(staker)]
        if stake_keypair is not None:
            signers.append(stake_keypair)
        return VersionedTransaction(message, signers)

    txn = Transaction.new_unsigned(Message.new_with_blockhash(instructions, staker, blockhash))
    if stake_keypair is not None:
        txn.partial_sign([stake_keypair], blockhash)
    return txn


async def build_stake_transaction(
    client: AsyncClient,
    staker: Union[Pubkey, str],
    vote: Pubkey,
    sol_amount: SolAmount,
    options: StakeTransactionOptions = StakeTransactionOptions(),
) -> StakeTransaction:
    """Builds a transaction delegating `sol_amount` SOL from `staker` to `vote`.

    The new stake account receives the requested lamports plus the rent
    exemption minimum, so the whole requested amount ends up delegated.
    Inputs are validated before the RPC node is contacted.
    """
    amount = parse_sol_amount(sol_amount)
    if amount > MAX_SOL:
        raise InvalidAmount(f"{amount} SOL exceeds the largest possible balance")
    lamports = sol_to_lamports(amount)
    if lamports <= 0:
        raise InvalidAmount(f"{amount} SOL is less than one lamport")
    staker = parse_address(staker)

    stake_keypair = None
    seed = None
    if options.account_mode == StakeAccountMode.KEYPAIR:
        stake_keypair = Keypair.from_seed(options.random_bytes(32))
        stake_account = stake_keypair.pubkey()
    else:
        seed = new_seed(options.seed_prefix, options.random_bytes)
        stake_account = Pubkey.create_with_seed(staker, seed, STAKE_PROGRAM_ID)

    blockhash, rent_exemption = await fetch_network_state(client, options.commitment, options.timeout)
    funded = lamports + rent_exemption
    if funded > MAX_LAMPORTS:
        raise InvalidAmount(f"{amount} SOL exceeds the largest possible balance")

    instructions = stake_instructions(staker, vote, stake_account, funded, seed)
    txn = assemble(instructions, staker, blockhash, stake_keypair, options.version)
    logger.info(
        "Built stake transaction: staker=%s stake_account=%s lamports=%d vote=%s",
        staker, stake_account, funded, vote,
    )
    return StakeTransaction(
        transaction=txn,
        instructions=instructions,
        staker=staker,
        stake_account=stake_account,
        lamports=funded,
        seed=seed,
    )
