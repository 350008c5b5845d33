"""Adaptive-bitrate streaming client simulation.

Example usage::

    from abrsim import AdaptiveBitrateStreamer, StreamerConfig

    config = StreamerConfig(simulated_bandwidth_trace=[6000.0] * 10)
    streamer = AdaptiveBitrateStreamer(config)
    records = streamer.run()
"""

from abrsim.buffer import BufferClassification, BufferState
from abrsim.catalog import DEFAULT_LADDER, QualityCatalog, QualityLevel
from abrsim.config import StreamerConfig
from abrsim.errors import ConfigurationError, InputExhausted
from abrsim.estimator import BandwidthEstimator, EstimatorStrategy
from abrsim.metrics import SessionMetrics
from abrsim.network import BandwidthTrace, SyntheticNetwork
from abrsim.selector import QualitySelector
from abrsim.smoother import Smoother, SmootherState
from abrsim.streamer import (
    AdaptiveBitrateStreamer,
    DecisionRecord,
    SegmentInfo,
    StreamerState,
)

__all__ = [
    "AdaptiveBitrateStreamer",
    "BandwidthEstimator",
    "BandwidthTrace",
    "BufferClassification",
    "BufferState",
    "ConfigurationError",
    "DEFAULT_LADDER",
    "DecisionRecord",
    "EstimatorStrategy",
    "InputExhausted",
    "QualityCatalog",
    "QualityLevel",
    "QualitySelector",
    "SegmentInfo",
    "SessionMetrics",
    "Smoother",
    "SmootherState",
    "StreamerConfig",
    "StreamerState",
    "SyntheticNetwork",
]
