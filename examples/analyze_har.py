"""Analyze a HAR capture from Python and gate on a performance budget.

Export a HAR file from your browser's network panel (or a Playwright
``record_har_path`` run), then:

    python examples/analyze_har.py capture.har

The CLI equivalent is:

    harperf analyze capture.har --threshold-level strict --fail-on-violation
"""

from __future__ import annotations

import sys

from harperf import CustomMetrics, ThresholdConfig, TraceAnalyzer


def main(path: str) -> int:
    metrics = CustomMetrics()
    metrics.add("pageLoadTime", 1840)

    budget = ThresholdConfig(max_average_response_time=800, max_failed_requests=0)
    report = TraceAnalyzer().analyze_file(path, custom_metrics=metrics, thresholds=budget)
    if report is None:
        print("trace has no entries")
        return 0

    summary = report.summary
    print(f"{summary.total_requests} requests, {summary.failed_requests} failed")
    print(f"avg {summary.average_response_time:.0f}ms, p95 {summary.percentile_95:.0f}ms")
    for violation in report.threshold_violations or []:
        print(f"  {violation.message}: {violation.actual:g} > {violation.threshold:g}")
    return 0 if report.passed else 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1]))
