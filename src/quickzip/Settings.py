"""Runtime settings for the archive dispatcher and its worker pool."""

from dataclasses import dataclass

DEFAULT_COMPRESSION_LEVEL = 3  # Moderate deflate, favours speed over ratio
DEFAULT_CHUNK_SIZE = 4 * 1024  # 4 KiB copy buffer
DEFAULT_MAX_WORKERS = 4
DEFAULT_MAX_PENDING = 16
DEFAULT_POLL_INTERVAL = 0.01  # 10 ms


@dataclass(frozen=True)
class ZipSettings:
    """Tunables shared by the engine, the pool and the scheduler.

    Attributes:
        compression_level (int): Deflate level (0-9) used when writing archives.
        chunk_size (int): Buffer size in bytes for streaming entry data.
        max_workers (int): Number of worker threads in the pool.
        max_pending (int): Outstanding operations admitted before backpressure.
        block_when_full (bool): Block the submitter instead of rejecting when
            the pool is saturated.
        poll_interval (float): Seconds slept between polls by blocking helpers.
    """
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_workers: int = DEFAULT_MAX_WORKERS
    max_pending: int = DEFAULT_MAX_PENDING
    block_when_full: bool = False
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def __post_init__(self) -> None:
        if not 0 <= self.compression_level <= 9:
            raise ValueError(f"compression_level must be within 0-9, got {self.compression_level}")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")
        if self.max_pending < self.max_workers:
            raise ValueError("max_pending must be at least max_workers")
        if self.poll_interval < 0:
            raise ValueError("poll_interval cannot be negative")
