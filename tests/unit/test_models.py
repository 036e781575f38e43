"""
Unit tests for simulation models.

Tests parameter validation rules, camelCase normalisation and
Simulation serialization.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from move_forge.exceptions import ValidationError
from move_forge.models import (
    ArtifactType,
    PoolParameters,
    Simulation,
    SimulationResult,
    SimulationStatus,
    TokenParameters,
    VaultParameters,
    build_parameters,
    parameters_to_dict,
)


class TestTokenParameters:
    """Tests for token parameter validation."""

    def test_valid_token(self, token_params: TokenParameters) -> None:
        assert token_params.symbol == "TST"
        assert token_params.icon_uri is None

    def test_symbol_of_eleven_characters_rejected(self) -> None:
        """Symbol longer than 10 characters fails with the symbol message."""
        with pytest.raises(ValidationError) as exc_info:
            TokenParameters(name="X", symbol="ABCDEFGHIJK", decimals=8, total_supply="1")

        assert exc_info.value.errors == ["Token symbol must be 1-10 characters"]
        assert exc_info.value.artifact_type == "token"

    def test_symbol_of_ten_characters_accepted(self) -> None:
        params = TokenParameters(name="X", symbol="ABCDEFGHIJ", decimals=0, total_supply="1")
        assert len(params.symbol) == 10

    @pytest.mark.parametrize("symbol", ["ABCDEFGHIJ ", " ABCDEFGHIJ", "   "])
    def test_symbol_length_counts_whitespace(self, symbol: str) -> None:
        """Padding counts toward the limit; a blank symbol is still rejected."""
        with pytest.raises(ValidationError) as exc_info:
            TokenParameters(name="X", symbol=symbol, decimals=8, total_supply="1")
        assert exc_info.value.errors == ["Token symbol must be 1-10 characters"]

    def test_every_failing_rule_reported(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TokenParameters(name=" ", symbol="", decimals=19, total_supply="0")

        assert exc_info.value.errors == [
            "Token name is required",
            "Token symbol must be 1-10 characters",
            "Decimals must be an integer between 0 and 18",
            "Total supply must be greater than 0",
        ]

    def test_boolean_decimals_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TokenParameters(name="X", symbol="X", decimals=True, total_supply="1")

    def test_non_numeric_supply_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TokenParameters(name="X", symbol="X", decimals=8, total_supply="lots")
        assert "Total supply must be greater than 0" in exc_info.value.errors

    def test_records_are_immutable(self, token_params: TokenParameters) -> None:
        with pytest.raises(FrozenInstanceError):
            token_params.symbol = "NEW"  # type: ignore[misc]


class TestPoolParameters:
    """Tests for pool parameter validation."""

    def test_negative_fee_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            PoolParameters(
                name="P",
                token_a="A",
                token_b="B",
                fee=-1,
                initial_liquidity_a="1",
                initial_liquidity_b="1",
            )
        assert exc_info.value.errors == ["Fee must be between 0 and 100"]

    @pytest.mark.parametrize("fee", [0, 0.3, 100])
    def test_fee_bounds_inclusive(self, fee: float) -> None:
        params = PoolParameters(
            name="P",
            token_a="A",
            token_b="B",
            fee=fee,
            initial_liquidity_a="1",
            initial_liquidity_b="1",
        )
        assert params.fee == fee

    def test_identical_tokens_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            PoolParameters(
                name="P",
                token_a="APT",
                token_b="APT",
                fee=1,
                initial_liquidity_a="1",
                initial_liquidity_b="1",
            )
        assert exc_info.value.errors == ["Token A and Token B must be different"]

    def test_zero_liquidity_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            PoolParameters(
                name="P",
                token_a="A",
                token_b="B",
                fee=1,
                initial_liquidity_a="0",
                initial_liquidity_b="-5",
            )
        assert exc_info.value.errors == [
            "Initial liquidity A must be greater than 0",
            "Initial liquidity B must be greater than 0",
        ]


class TestVaultParameters:
    """Tests for vault parameter validation."""

    def test_zero_min_deposit_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            VaultParameters(name="V", token="APT", strategy="staking", fee=1, min_deposit="0")
        assert exc_info.value.errors == ["Minimum deposit must be greater than 0"]

    def test_fee_above_hundred_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            VaultParameters(name="V", token="APT", strategy="staking", fee=101, min_deposit="1")
        assert exc_info.value.errors == ["Fee must be between 0 and 100"]


class TestBuildParameters:
    """Tests for building records from untyped mappings."""

    def test_camel_case_token(self, token_raw: dict) -> None:
        params = build_parameters("token", token_raw)

        assert isinstance(params, TokenParameters)
        assert params.total_supply == "1000000"

    def test_camel_case_pool(self, pool_raw: dict) -> None:
        params = build_parameters(ArtifactType.POOL, pool_raw)

        assert isinstance(params, PoolParameters)
        assert params.initial_liquidity_a == "1000"
        assert params.initial_liquidity_b == "500"

    def test_snake_case_vault(self) -> None:
        params = build_parameters(
            "vault",
            {"name": "V", "token": "APT", "strategy": "s", "fee": 1, "min_deposit": "5"},
        )
        assert isinstance(params, VaultParameters)

    def test_numeric_amounts_normalised_to_strings(self) -> None:
        params = build_parameters(
            "token", {"name": "X", "symbol": "X", "decimals": 6, "totalSupply": 500}
        )
        assert params.total_supply == "500"

    def test_unknown_and_missing_keys_reported(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_parameters("token", {"name": "X", "symbol": "X", "colour": "red"})

        assert exc_info.value.errors == [
            "Unknown parameter: colour",
            "Missing parameter: decimals",
            "Missing parameter: total_supply",
        ]

    def test_unknown_artifact_type(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_parameters("nft", {})
        assert exc_info.value.errors == ["Unsupported artifact type: nft"]

    def test_min_deposit_zero_string(self, vault_raw: dict) -> None:
        vault_raw["minDeposit"] = "0"
        with pytest.raises(ValidationError) as exc_info:
            build_parameters("vault", vault_raw)
        assert "Minimum deposit must be greater than 0" in exc_info.value.errors


class TestSimulation:
    """Tests for the Simulation record."""

    def test_defaults(self, token_params: TokenParameters) -> None:
        sim = Simulation(artifact_type=ArtifactType.TOKEN, parameters=token_params)

        assert sim.id.startswith("sim_")
        assert sim.status == SimulationStatus.PENDING
        assert sim.generated_source == ""
        assert sim.result is None
        assert sim.execution_count == 0

    def test_ids_are_unique(self, token_params: TokenParameters) -> None:
        ids = {
            Simulation(artifact_type=ArtifactType.TOKEN, parameters=token_params).id
            for _ in range(100)
        }
        assert len(ids) == 100

    def test_mismatched_parameters_rejected(self, pool_params: PoolParameters) -> None:
        with pytest.raises(ValidationError):
            Simulation(artifact_type=ArtifactType.TOKEN, parameters=pool_params)

    def test_to_dict(self, token_params: TokenParameters) -> None:
        sim = Simulation(artifact_type=ArtifactType.TOKEN, parameters=token_params)
        sim.result = SimulationResult.failure("boom")

        data = sim.to_dict()

        assert data["artifact_type"] == "token"
        assert data["status"] == "pending"
        assert data["parameters"] == parameters_to_dict(token_params)
        assert "icon_uri" not in data["parameters"]
        assert data["result"]["success"] is False
        assert data["result"]["errors"] == ["boom"]

    def test_busy_statuses(self) -> None:
        assert SimulationStatus.GENERATING.is_busy
        assert SimulationStatus.COMPILING.is_busy
        assert not SimulationStatus.PENDING.is_busy
        assert not SimulationStatus.SUCCESS.is_busy
        assert not SimulationStatus.ERROR.is_busy
