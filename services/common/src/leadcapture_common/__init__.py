from leadcapture_common.config import PostgresConfig, RedisConfig
from leadcapture_common.db_models import CallRecordRow
from leadcapture_common.logging import setup_logging

__all__ = [
    "setup_logging",
    "PostgresConfig",
    "RedisConfig",
    "CallRecordRow",
]
