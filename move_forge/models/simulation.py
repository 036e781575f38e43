"""
move_forge/models/simulation.py
Core data models for simulations and artifact parameters.

Follows: Single Responsibility Principle (data and validation only)
"""

from __future__ import annotations

import math
from dataclasses import MISSING, asdict, dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field

from ..exceptions import ValidationError


# ENUMS

class ArtifactType(str, Enum):
    """Kinds of on-chain artifact a simulation can produce."""
    TOKEN = "token"
    POOL = "pool"
    VAULT = "vault"


class SimulationStatus(str, Enum):
    """Lifecycle states of a simulation."""
    PENDING = "pending"
    GENERATING = "generating"
    COMPILING = "compiling"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_busy(self) -> bool:
        """True while a generate or compile cycle is in flight."""
        return self in (SimulationStatus.GENERATING, SimulationStatus.COMPILING)


# VALIDATION HELPERS

def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_positive_amount(value: Any) -> bool:
    """Numeric string strictly greater than zero."""
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        amount = float(value)
    except ValueError:
        return False
    return math.isfinite(amount) and amount > 0


def _is_fee(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and 0 <= value <= 100


# PARAMETER RECORDS

@dataclass(frozen=True)
class TokenParameters:
    """Fungible asset definition."""
    ARTIFACT_TYPE: ClassVar[ArtifactType] = ArtifactType.TOKEN
    ALIASES: ClassVar[dict[str, str]] = {
        "totalSupply": "total_supply",
        "iconUri": "icon_uri",
        "projectUri": "project_uri",
    }

    name: str
    symbol: str
    decimals: int
    total_supply: str
    icon_uri: Optional[str] = None
    project_uri: Optional[str] = None

    def __post_init__(self) -> None:
        errors: list[str] = []
        if _is_blank(self.name):
            errors.append("Token name is required")
        if _is_blank(self.symbol) or not 1 <= len(self.symbol) <= 10:
            errors.append("Token symbol must be 1-10 characters")
        if (
            isinstance(self.decimals, bool)
            or not isinstance(self.decimals, int)
            or not 0 <= self.decimals <= 18
        ):
            errors.append("Decimals must be an integer between 0 and 18")
        if not _is_positive_amount(self.total_supply):
            errors.append("Total supply must be greater than 0")
        if errors:
            raise ValidationError(errors, artifact_type=self.ARTIFACT_TYPE.value)


@dataclass(frozen=True)
class PoolParameters:
    """Liquidity pool definition for a token pair."""
    ARTIFACT_TYPE: ClassVar[ArtifactType] = ArtifactType.POOL
    ALIASES: ClassVar[dict[str, str]] = {
        "tokenA": "token_a",
        "tokenB": "token_b",
        "initialLiquidityA": "initial_liquidity_a",
        "initialLiquidityB": "initial_liquidity_b",
    }

    name: str
    token_a: str
    token_b: str
    fee: float
    initial_liquidity_a: str
    initial_liquidity_b: str

    def __post_init__(self) -> None:
        errors: list[str] = []
        if _is_blank(self.name):
            errors.append("Pool name is required")
        if _is_blank(self.token_a) or _is_blank(self.token_b):
            errors.append("Both tokens are required")
        elif self.token_a.strip() == self.token_b.strip():
            errors.append("Token A and Token B must be different")
        if not _is_fee(self.fee):
            errors.append("Fee must be between 0 and 100")
        if not _is_positive_amount(self.initial_liquidity_a):
            errors.append("Initial liquidity A must be greater than 0")
        if not _is_positive_amount(self.initial_liquidity_b):
            errors.append("Initial liquidity B must be greater than 0")
        if errors:
            raise ValidationError(errors, artifact_type=self.ARTIFACT_TYPE.value)


@dataclass(frozen=True)
class VaultParameters:
    """Yield vault definition."""
    ARTIFACT_TYPE: ClassVar[ArtifactType] = ArtifactType.VAULT
    ALIASES: ClassVar[dict[str, str]] = {"minDeposit": "min_deposit"}

    name: str
    token: str
    strategy: str
    fee: float
    min_deposit: str

    def __post_init__(self) -> None:
        errors: list[str] = []
        if _is_blank(self.name):
            errors.append("Vault name is required")
        if _is_blank(self.token):
            errors.append("Token is required")
        if _is_blank(self.strategy):
            errors.append("Strategy is required")
        if not _is_fee(self.fee):
            errors.append("Fee must be between 0 and 100")
        if not _is_positive_amount(self.min_deposit):
            errors.append("Minimum deposit must be greater than 0")
        if errors:
            raise ValidationError(errors, artifact_type=self.ARTIFACT_TYPE.value)


ArtifactParameters = Union[TokenParameters, PoolParameters, VaultParameters]

PARAMETER_TYPES: dict[ArtifactType, type] = {
    ArtifactType.TOKEN: TokenParameters,
    ArtifactType.POOL: PoolParameters,
    ArtifactType.VAULT: VaultParameters,
}


def build_parameters(
    artifact_type: Union[ArtifactType, str],
    raw: Mapping[str, Any],
) -> ArtifactParameters:
    """
    Build a typed parameter record from an untyped mapping.

    Accepts snake_case keys or the camelCase keys used by web clients.
    Numeric amounts given as JSON numbers are normalised to strings.

    Raises:
        ValidationError: Unknown artifact type, unknown or missing keys,
            or any failing field rule
    """
    try:
        kind = ArtifactType(artifact_type)
    except ValueError:
        raise ValidationError([f"Unsupported artifact type: {artifact_type}"]) from None

    record_type = PARAMETER_TYPES[kind]
    aliases: dict[str, str] = record_type.ALIASES
    known = {f.name for f in fields(record_type)}

    values: dict[str, Any] = {}
    unknown: list[str] = []
    for key, value in raw.items():
        name = aliases.get(key, key)
        if name in known:
            values[name] = value
        else:
            unknown.append(key)

    errors = [f"Unknown parameter: {key}" for key in sorted(unknown)]
    required = [f.name for f in fields(record_type) if not _has_default(f)]
    errors.extend(f"Missing parameter: {name}" for name in required if name not in values)
    if errors:
        raise ValidationError(errors, artifact_type=kind.value)

    for name in ("total_supply", "initial_liquidity_a", "initial_liquidity_b", "min_deposit"):
        value = values.get(name)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            values[name] = str(value)

    return record_type(**values)


def _has_default(f: Any) -> bool:
    return f.default is not MISSING or f.default_factory is not MISSING


def parameters_to_dict(parameters: ArtifactParameters) -> dict[str, Any]:
    """Serialize a parameter record, dropping unset optional fields."""
    return {key: value for key, value in asdict(parameters).items() if value is not None}


# DATACLASSES

@dataclass
class SimulationResult:
    """Structured verdict of one compile-and-analyze cycle."""
    success: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    gas_estimate: Optional[str] = None
    ai_analysis: Optional[str] = None
    exit_code: Optional[int] = None
    duration_seconds: Optional[float] = None

    @classmethod
    def failure(cls, message: str) -> SimulationResult:
        """Result carrying a single human-readable error."""
        return cls(success=False, errors=[message])

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "gas_estimate": self.gas_estimate,
            "ai_analysis": self.ai_analysis,
            "exit_code": self.exit_code,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class Simulation:
    """One artifact's generation and verification attempt."""
    artifact_type: ArtifactType
    parameters: ArtifactParameters
    id: str = field(default_factory=lambda: f"sim_{uuid4().hex}")
    generated_source: str = ""
    raw_response: str = ""
    status: SimulationStatus = SimulationStatus.PENDING
    result: Optional[SimulationResult] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    execution_count: int = 0

    IMMUTABLE_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"id", "artifact_type", "parameters", "created_at"}
    )

    def __post_init__(self) -> None:
        """Reject parameter records of the wrong artifact type."""
        if self.parameters.ARTIFACT_TYPE is not self.artifact_type:
            raise ValidationError(
                [f"{type(self.parameters).__name__} cannot describe a {self.artifact_type.value}"],
                artifact_type=self.artifact_type.value,
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "artifact_type": self.artifact_type.value,
            "parameters": parameters_to_dict(self.parameters),
            "generated_source": self.generated_source,
            "status": self.status.value,
            "result": self.result.to_dict() if self.result else None,
            "created_at": self.created_at.isoformat(),
            "execution_count": self.execution_count,
        }


# PYDANTIC MODELS

class SimulationCreateRequest(BaseModel):
    """API request to create a simulation."""
    artifact_type: ArtifactType = Field(..., description="token, pool or vault")
    parameters: dict[str, Any] = Field(..., description="Type-specific parameter record")


class SandboxTestRequest(BaseModel):
    """API request to compile caller-supplied source in a fresh simulation."""
    artifact_type: ArtifactType
    parameters: dict[str, Any]
    source: str = Field(..., min_length=1, max_length=200_000)
