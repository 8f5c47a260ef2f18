"""
Performance Benchmark
=====================

Timing of the CSD credential pipeline as the number of claims grows:
- Issuance (conceal + accumulate + witnesses)
- Envelope size
- Parallel verification (decode + validate), the dominant cost on the verifier

Usage:
    python doc/performance_benchmark.py
"""

import json
import os
import sys
import time
from typing import Dict, List, Tuple

# Add the repository root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from csd_decoder import CsdDecoder
from csd_encoder import CsdEncoder


def populate_map(n_claims: int) -> Dict[str, str]:
    """A claim map with dummy claims"""
    return {f"Claim Key {i}": f"Claim Value {i}" for i in range(n_claims)}


def populate_concealments(n_conceals: int) -> List[str]:
    """Dummy concealment paths (the first n_conceals claims)"""
    return [f"/Claim Key {i}" for i in range(n_conceals)]


class PerformanceBenchmark:
    """Benchmark runner"""

    def __init__(self, curve='BN254', max_workers=None):
        print(f"Initializing benchmark (curve: {curve})...")
        self.curve = curve
        self.decoder = CsdDecoder(max_workers=max_workers)
        self.results = {'issue': {}, 'verify': {}, 'envelope_bytes': {}}

    def measure_time(self, func, *args, num_runs=5, **kwargs) -> Tuple[float, float, any]:
        """
        Mean and standard deviation of the execution time (seconds).

        Returns
        -------
        (mean, std_dev, last result)
        """
        times = []
        result = None

        for _ in range(num_runs):
            start = time.perf_counter()
            result = func(*args, **kwargs)
            end = time.perf_counter()
            times.append(end - start)

        avg_time = sum(times) / len(times)
        std_dev = (sum((t - avg_time) ** 2 for t in times) / len(times)) ** 0.5

        return avg_time, std_dev, result

    def _issue(self, claims, concealments):
        encoder = CsdEncoder(claims, group_name=self.curve)
        for path in concealments:
            encoder.conceal(path)
        encoder.add_sd_alg_property()
        return encoder.finalize()

    def _verify(self, envelope):
        decoded = self.decoder.decode(envelope)
        return self.decoder.validate_object(decoded)

    def run(self, claim_counts: List[int], n_conceals=1, num_runs=5):
        """Time issuance and verification for every claim count"""
        print("\nParallel verification time (each measurement repeated {} times)".format(num_runs))
        print("=" * 60)
        print("Claims\tIssue (ms)\tVerify (us)")

        for n in claim_counts:
            claims = populate_map(n)
            concealments = populate_concealments(min(n_conceals, n))

            t_issue, _, envelope = self.measure_time(self._issue, claims, concealments,
                                                     num_runs=num_runs)
            t_verify, s_verify, ok = self.measure_time(self._verify, envelope, num_runs=num_runs)
            assert ok

            self.results['issue'][n] = t_issue
            self.results['verify'][n] = t_verify
            self.results['envelope_bytes'][n] = len(json.dumps(envelope))
            print(f"({n:03d})\t{t_issue * 1000:.2f}\t\t{t_verify * 1e6:.2f} ± {s_verify * 1e6:.2f}")

        return self.results

    def save_results(self, filename='benchmark_results.json'):
        """Save results as JSON"""
        os.makedirs(os.path.dirname(filename) if os.path.dirname(filename) else '.', exist_ok=True)
        with open(filename, 'w') as f:
            json.dump(self.results, f, indent=2)
        print(f"\nResults saved to {filename}")

    def plot_results(self, filename='perf_verification.png'):
        """Plot verification time against the number of claims"""
        import matplotlib
        matplotlib.use('Agg')
        import matplotlib.pyplot as plt

        counts = sorted(self.results['verify'])
        fig, ax = plt.subplots(figsize=(10, 6))
        ax.plot(counts, [self.results['verify'][n] * 1000 for n in counts],
                marker='o', label='verify (parallel)')
        ax.plot(counts, [self.results['issue'][n] * 1000 for n in counts],
                marker='s', label='issue')
        ax.set_xlabel('Number of claims')
        ax.set_ylabel('Time (ms)')
        ax.set_title(f'CSD credential performance ({self.curve})')
        ax.grid(True, alpha=0.3)
        ax.legend()
        plt.tight_layout()
        plt.savefig(filename, dpi=300, bbox_inches='tight')
        plt.close(fig)
        print(f"Plot saved to {filename}")


if __name__ == '__main__':
    benchmark = PerformanceBenchmark('BN254')
    benchmark.run(list(range(1, 101)), n_conceals=1, num_runs=3)
    benchmark.save_results('results/benchmark_results.json')
    benchmark.plot_results('results/perf_verification.png')
