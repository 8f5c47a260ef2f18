"""
Distributed CSD configuration
Addresses and ports of the issuer and verifier servers
"""

import os

from csd.config import config as core_config

# Default configuration
DEFAULT_ISSUER_HOST = os.getenv('ISSUER_HOST', 'localhost')
DEFAULT_ISSUER_PORT = int(os.getenv('ISSUER_PORT', 5001))

DEFAULT_VERIFIER_HOST = os.getenv('VERIFIER_HOST', 'localhost')
DEFAULT_VERIFIER_PORT = int(os.getenv('VERIFIER_PORT', 5003))

# Seconds before a client gives up on a server
DEFAULT_REQUEST_TIMEOUT = float(os.getenv('CSD_REQUEST_TIMEOUT', 30))


class Config:
    """Server configuration"""

    def __init__(self):
        self.issuer_host = DEFAULT_ISSUER_HOST
        self.issuer_port = DEFAULT_ISSUER_PORT
        self.verifier_host = DEFAULT_VERIFIER_HOST
        self.verifier_port = DEFAULT_VERIFIER_PORT
        self.request_timeout = DEFAULT_REQUEST_TIMEOUT
        self.pairing_curve = core_config.pairing_curve
        self.param_seed = core_config.param_seed

    @property
    def issuer_url(self):
        return f"http://{self.issuer_host}:{self.issuer_port}"

    @property
    def verifier_url(self):
        return f"http://{self.verifier_host}:{self.verifier_port}"


# Global configuration instance
config = Config()
