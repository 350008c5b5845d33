import logging

from abrsim.config import StreamerConfig
from abrsim.network import SyntheticNetwork
from abrsim.streamer import AdaptiveBitrateStreamer


def run_simulation(duration_s=600, seed=42, strategy="harmonic"):
    network = SyntheticNetwork(base_bandwidth_kbps=4000.0, seed=seed)
    segment_s = 4.0
    config = StreamerConfig(
        estimator_strategy=strategy,
        segment_duration_seconds=segment_s,
        simulated_bandwidth_trace=network.generate(int(duration_s / segment_s)),
        content_duration_seconds=duration_s,
    )
    streamer = AdaptiveBitrateStreamer(config)
    streamer.run()
    return streamer.report()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    report = run_simulation()
    AdaptiveBitrateStreamer.print_report(report)
