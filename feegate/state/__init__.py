"""
Configuration and windowed state for the fee engine
"""

from .congestion import CongestionCache, CongestionProfile, CongestionRegistry, CongestionTier
from .cooldowns import CooldownTable
from .market_config import FeeOverrides, MarketFeeConfig, PauseFlags, VolatilityBands, VolumeBands
from .price_window import PriceSnapshot, PriceWindow
from .volume import VolumeAggregator

__all__ = [
    "CongestionCache",
    "CongestionProfile",
    "CongestionRegistry",
    "CongestionTier",
    "CooldownTable",
    "FeeOverrides",
    "MarketFeeConfig",
    "PauseFlags",
    "VolatilityBands",
    "VolumeBands",
    "PriceSnapshot",
    "PriceWindow",
    "VolumeAggregator",
]
