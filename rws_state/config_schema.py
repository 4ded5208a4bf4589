from dataclasses import dataclass


@dataclass
class SyncConfig:
    """
    Settings of the synchronization layer.
    timeout_s bounds a single refresh (including both halves of StaticInfo);
    min_refresh_interval_s throttles cached reads such as get_static_info().
    """
    timeout_s: float = 5.0
    min_refresh_interval_s: float = 0.02

    def __post_init__(self):
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")
        if self.min_refresh_interval_s < 0:
            raise ValueError(f"min_refresh_interval_s must be >= 0, got {self.min_refresh_interval_s}")
