"""
Fee skim kernel (deterministic, integer-only).

The primary pattern here is **dust-carry**: rounding remainders are carried
forward so value is never stranded across repeated skims.
"""

from __future__ import annotations

from dataclasses import dataclass

from .math import FEE_DENOM, MAX_SKIM_FEE, U128_MAX, saturating_add


@dataclass(frozen=True)
class SkimResult:
    skimmed_amount: int
    dust_carried: int

    def __post_init__(self) -> None:
        for name, v in (
            ("skimmed_amount", self.skimmed_amount),
            ("dust_carried", self.dust_carried),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")


@dataclass(frozen=True)
class SkimAccumulatorState:
    """Accrued skim balance plus rounding dust, in FEE_DENOM-scaled output units."""

    accrued: int = 0
    dust: int = 0

    def __post_init__(self) -> None:
        for name, v in (("accrued", self.accrued), ("dust", self.dust)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative")
        if self.dust >= FEE_DENOM:
            raise ValueError(f"dust must be < {FEE_DENOM}")


def skim_with_dust_carry(
    output_amount: int,
    skim_fee: int,
    state: SkimAccumulatorState = SkimAccumulatorState(),
) -> tuple[SkimResult, SkimAccumulatorState]:
    """
    Skim ``output_amount * skim_fee / FEE_DENOM`` with deterministic floor rounding.

    The scaled remainder is carried in ``state.dust`` and added to the next skim.
    """
    if not isinstance(output_amount, int) or isinstance(output_amount, bool) or output_amount < 0:
        raise ValueError(f"output_amount must be a non-negative int, got {output_amount}")
    if not isinstance(skim_fee, int) or isinstance(skim_fee, bool) or not (0 <= skim_fee <= MAX_SKIM_FEE):
        raise ValueError(f"skim_fee must be in [0, {MAX_SKIM_FEE}], got {skim_fee}")

    scaled = output_amount * skim_fee + state.dust
    skimmed = scaled // FEE_DENOM
    dust = scaled - skimmed * FEE_DENOM
    if skimmed > output_amount:
        raise AssertionError("skim exceeded output")

    return (
        SkimResult(skimmed_amount=skimmed, dust_carried=dust),
        SkimAccumulatorState(accrued=saturating_add(state.accrued, skimmed, bound=U128_MAX), dust=dust),
    )
