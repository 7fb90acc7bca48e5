"""SSRF guard: hostname resolution and address classification.

  - resolver.py   — resolve_host(): hostname → single address for classification
  - classifier.py — classify_address(): address → allowed / blocked (+ reason)
"""

from safeproxy.guard.classifier import BlockReason, ClassificationResult, classify_address
from safeproxy.guard.resolver import resolve_host

__all__ = ["BlockReason", "ClassificationResult", "classify_address", "resolve_host"]
