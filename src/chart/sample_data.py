"""
Built-in data used when the caller does not supply any.
"""

from typing import List

from src.chart.models import OverlayTarget, Record

SAMPLE_RECORDS: List[Record] = [
    Record(bucket_key="2024-01", category="A", value=20),
    Record(bucket_key="2024-01", category="B", value=30),
    Record(bucket_key="2024-01", category="C", value=15),
    Record(bucket_key="2024-02", category="A", value=25),
    Record(bucket_key="2024-02", category="B", value=35),
    Record(bucket_key="2024-02", category="C", value=20),
    Record(bucket_key="2024-03", category="A", value=30),
    Record(bucket_key="2024-03", category="B", value=25),
    Record(bucket_key="2024-03", category="C", value=25),
]

# Quarterly targets, one per sample bucket
DEFAULT_TARGETS: List[OverlayTarget] = [
    OverlayTarget(bucket_key="2024-01", target_value=50),
    OverlayTarget(bucket_key="2024-02", target_value=60),
    OverlayTarget(bucket_key="2024-03", target_value=70),
]
