"""
Distributed CSD client library
Wraps the HTTP calls to the issuer and verifier servers
"""

from typing import Dict, List

import requests

from distributed.config import config


class IssuerClient:
    """Issuer client"""

    def __init__(self, base_url: str = None, timeout: float = None):
        self.base_url = base_url or config.issuer_url
        self.timeout = timeout or config.request_timeout

    def health(self) -> dict:
        """Health check"""
        resp = requests.get(f"{self.base_url}/health", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def init(self, curve: str = None, param_seed: int = None) -> dict:
        """Initialize the issuer"""
        data = {}
        if curve:
            data['curve'] = curve
        if param_seed is not None:
            data['param_seed'] = param_seed
        resp = requests.post(f"{self.base_url}/init", json=data, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def get_verifying_key(self) -> dict:
        """Fetch the issuer verification key"""
        resp = requests.get(f"{self.base_url}/verifying_key", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def issue(self, claims: Dict, conceal: List[str] = None) -> dict:
        """Issue a credential"""
        resp = requests.post(f"{self.base_url}/issue", json={
            'claims': claims,
            'conceal': conceal or []
        }, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()


class VerifierClient:
    """Verifier client"""

    def __init__(self, base_url: str = None, timeout: float = None):
        self.base_url = base_url or config.verifier_url
        self.timeout = timeout or config.request_timeout

    def health(self) -> dict:
        """Health check"""
        resp = requests.get(f"{self.base_url}/health", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def init(self, verifying_key: str) -> dict:
        """Initialize the verifier with the issuer's key"""
        resp = requests.post(f"{self.base_url}/init", json={'verifying_key': verifying_key},
                             timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def verify(self, presentation: str) -> dict:
        """Verify a presentation"""
        resp = requests.post(f"{self.base_url}/verify", json={'presentation': presentation},
                             timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()
