"""
CSD Configuration
=================

Defaults are read from the environment once, at import time.
"""

import logging
import os

# Pairing curve used for new credentials
DEFAULT_PAIRING_CURVE = os.getenv('CSD_PAIRING_CURVE', 'BN254')

# Seed for the public setup parameters (published in every envelope)
DEFAULT_PARAM_SEED = int(os.getenv('CSD_PARAM_SEED', 1))

# Seed for the issuer keypair; unset means a fresh random seed per issuance
_KEY_SEED = os.getenv('CSD_KEY_SEED')
DEFAULT_KEY_SEED = int(_KEY_SEED) if _KEY_SEED not in (None, '') else None

# Worker pool used to verify witnesses; 0 picks the executor default
DEFAULT_MAX_WORKERS = int(os.getenv('CSD_MAX_WORKERS', 0))

# Cancel outstanding checks once a witness fails
FAIL_FAST = os.getenv('CSD_FAIL_FAST', 'true').lower() == 'true'

LOG_LEVEL = os.getenv('CSD_LOG_LEVEL', 'INFO').upper()

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


class Config:
    """Runtime configuration."""

    def __init__(self):
        self.pairing_curve = DEFAULT_PAIRING_CURVE
        self.param_seed = DEFAULT_PARAM_SEED
        self.key_seed = DEFAULT_KEY_SEED
        self.max_workers = DEFAULT_MAX_WORKERS
        self.fail_fast = FAIL_FAST
        self.log_level = LOG_LEVEL

    @property
    def worker_limit(self):
        """Upper bound for the verification pool, ``None`` for the executor default."""
        return self.max_workers if self.max_workers > 0 else None


def configure_logging(level: str = None):
    """Install a stream handler on the root logger (used by servers and scripts)."""
    logging.basicConfig(level=level or config.log_level, format=LOG_FORMAT)


# Global configuration instance
config = Config()
