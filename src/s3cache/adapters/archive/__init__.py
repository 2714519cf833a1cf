"""Archive codec adapters."""

from s3cache.adapters.archive.tar import TarArchiveCodec, zstd_available


__all__ = ["TarArchiveCodec", "zstd_available"]
