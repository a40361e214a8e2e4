import pytest
from pydantic import ValidationError

from blink.config import Settings
from stake.actions import StakeAccountMode, TransactionVersion


def test_defaults():
    settings = Settings(_env_file=None)
    assert str(settings.vote_account) == settings.VALIDATOR_VOTE_ACCOUNT
    options = settings.stake_options
    assert options.account_mode == StakeAccountMode.SEED
    assert options.version == TransactionVersion.LEGACY
    assert options.timeout == settings.RPC_TIMEOUT


def test_overrides_from_environment(monkeypatch):
    monkeypatch.setenv("STAKE_ACCOUNT_MODE", "keypair")
    monkeypatch.setenv("TRANSACTION_VERSION", "v0")
    monkeypatch.setenv("PRESET_AMOUNTS", '["0.5", "2"]')
    monkeypatch.setenv("COMMITMENT", "confirmed")
    settings = Settings(_env_file=None)
    assert settings.stake_options.account_mode == StakeAccountMode.KEYPAIR
    assert settings.stake_options.version == TransactionVersion.V0
    assert settings.stake_options.commitment == "confirmed"
    assert [str(amount) for amount in settings.PRESET_AMOUNTS] == ["0.5", "2"]


@pytest.mark.parametrize(
    "field, value",
    [
        ("VALIDATOR_VOTE_ACCOUNT", "not-a-vote-account"),
        ("SEED_PREFIX", "a-very-long-seed-prefix"),
        ("ACTION_PATH", "api/actions/stake"),
        ("COMMITMENT", "finalised"),
    ],
)
def test_rejects_bad_values(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})
