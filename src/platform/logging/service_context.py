"""
Identifies the emitting process so interleaved logs from several booking
instances can be told apart.
"""

from functools import lru_cache
import os

from src.platform.config.core_setting import settings


@lru_cache(maxsize=1)
def get_service_context() -> str:
    instance = os.getenv('POD_NAME') or str(os.getpid())
    return f'{settings.SERVICE_NAME}@{settings.DEPLOY_ENV}:{instance}'
