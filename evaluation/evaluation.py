#!/usr/bin/env python3
"""
Evaluation runner for the huffzip codec.

This evaluation script:
- Runs the pytest suite in tests/ and collects individual test results
- Benchmarks compression over a fixed set of generated corpora
- Generates a structured JSON report with environment metadata

Run with:
    python evaluation/evaluation.py [--output report.json]
"""
import os
import sys
import json
import uuid
import random
import platform
import subprocess
import time
from datetime import datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from huffman_errors import HuffmanError  # noqa: E402
from huffman_service import HuffmanService  # noqa: E402

SAMPLE_TEXT = (
    b"It was the best of times, it was the worst of times, it was the age of "
    b"wisdom, it was the age of foolishness, it was the epoch of belief, it "
    b"was the epoch of incredulity.\n"
)


def generate_run_id():
    """Generate a short unique run ID."""
    return uuid.uuid4().hex[:8]


def get_git_info():
    """Get git commit and branch information."""
    git_info = {"git_commit": "unknown", "git_branch": "unknown"}
    for key, cmd in (
        ("git_commit", ["git", "rev-parse", "HEAD"]),
        ("git_branch", ["git", "rev-parse", "--abbrev-ref", "HEAD"]),
    ):
        try:
            result = subprocess.run(cmd, capture_output=True, text=True,
                                    cwd=str(PROJECT_ROOT), timeout=5)
        except (OSError, subprocess.SubprocessError):
            continue
        if result.returncode == 0:
            value = result.stdout.strip()
            git_info[key] = value[:8] if key == "git_commit" else value
    return git_info


def get_environment_info():
    """Collect environment information for the report."""
    git_info = get_git_info()

    return {
        "python_version": platform.python_version(),
        "platform": platform.platform(),
        "os": platform.system(),
        "os_release": platform.release(),
        "architecture": platform.machine(),
        "hostname": platform.node(),
        "git_commit": git_info["git_commit"],
        "git_branch": git_info["git_branch"],
    }


def build_corpora(seed=1234):
    """Fixed inputs covering the degenerate and typical cases."""
    rng = random.Random(seed)
    return {
        "empty": b"",
        "single_byte_repeated": b"a" * 4096,
        "english_text": SAMPLE_TEXT * 64,
        "all_byte_values": bytes(range(256)) * 16,
        "random_bytes": bytes(rng.getrandbits(8) for _ in range(16 * 1024)),
    }


def benchmark_corpus(service, name, data):
    """Compress and restore one input, recording sizes, timing and round-trip success."""
    t0 = time.perf_counter()
    container = service.compress(data)
    t1 = time.perf_counter()
    try:
        restored = service.decompress(container)
        error = None
    except HuffmanError as e:
        restored = None
        error = str(e)
    t2 = time.perf_counter()

    return {
        "name": name,
        "original_bytes": len(data),
        "compressed_bytes": len(container),
        "ratio": round(len(container) / len(data), 4) if data else None,
        "compress_seconds": round(t1 - t0, 6),
        "decompress_seconds": round(t2 - t1, 6),
        "roundtrip_ok": restored == data,
        "error": error,
    }


def run_benchmark(corpora=None):
    service = HuffmanService()
    if corpora is None:
        corpora = build_corpora()
    results = [benchmark_corpus(service, name, data) for name, data in corpora.items()]

    print(f"\n{'=' * 60}")
    print("COMPRESSION BENCHMARK")
    print(f"{'=' * 60}")
    for r in results:
        status_icon = "✅" if r["roundtrip_ok"] else "❌"
        print(f"  {status_icon} {r['name']}: {r['original_bytes']} -> {r['compressed_bytes']} bytes")
    return results


def run_pytest(tests_dir, timeout=300):
    """
    Run pytest on the tests/ folder.

    Args:
        tests_dir: Path to the tests directory
        timeout: Seconds before the pytest subprocess is abandoned

    Returns:
        dict with test results
    """
    print(f"\n{'=' * 60}")
    print("RUNNING TESTS")
    print(f"{'=' * 60}")
    print(f"Tests directory: {tests_dir}")

    cmd = [
        sys.executable, "-m", "pytest",
        str(tests_dir),
        "-v",
        "--tb=short",
    ]

    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(PROJECT_ROOT), env.get("PYTHONPATH")) if p)

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=str(PROJECT_ROOT),
            env=env,
            timeout=timeout
        )
    except subprocess.TimeoutExpired:
        print("❌ Test execution timed out")
        return {
            "success": False,
            "exit_code": -1,
            "tests": [],
            "summary": {"error": "Test execution timed out"},
            "stdout": "",
            "stderr": "",
        }

    stdout = result.stdout
    stderr = result.stderr
    tests = parse_pytest_verbose_output(stdout)
    summary = summarize(tests)

    print(f"\nResults: {summary['passed']} passed, {summary['failed']} failed, "
          f"{summary['errors']} errors, {summary['skipped']} skipped (total: {summary['total']})")

    return {
        "success": result.returncode == 0,
        "exit_code": result.returncode,
        "tests": tests,
        "summary": summary,
        "stdout": stdout[-3000:] if len(stdout) > 3000 else stdout,
        "stderr": stderr[-1000:] if len(stderr) > 1000 else stderr,
    }


def summarize(tests):
    counts = {"passed": 0, "failed": 0, "errors": 0, "skipped": 0}
    for t in tests:
        key = "errors" if t["outcome"] == "error" else t["outcome"]
        counts[key] += 1
    counts["total"] = len(tests)
    return counts


def parse_pytest_verbose_output(output):
    """Parse pytest verbose output to extract test results."""
    tests = []

    for line in output.split('\n'):
        line_stripped = line.strip()

        # Match lines like: tests/test_core.py::test_weight_invariant PASSED
        if '::' not in line_stripped:
            continue
        for status_word, outcome in ((' PASSED', "passed"), (' FAILED', "failed"),
                                     (' ERROR', "error"), (' SKIPPED', "skipped")):
            if status_word in line_stripped:
                nodeid = line_stripped.split(status_word)[0].strip()
                tests.append({
                    "nodeid": nodeid,
                    "name": nodeid.split("::")[-1],
                    "outcome": outcome,
                })
                break

    return tests


def generate_output_path():
    """Generate output path in format: evaluation/YYYY-MM-DD/HH-MM-SS/report.json"""
    now = datetime.now()
    output_dir = PROJECT_ROOT / "evaluation" / now.strftime("%Y-%m-%d") / now.strftime("%H-%M-%S")
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir / "report.json"


def main(argv=None):
    """Main entry point for evaluation."""
    import argparse

    parser = argparse.ArgumentParser(description="Run huffzip evaluation")
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output JSON file path (default: evaluation/YYYY-MM-DD/HH-MM-SS/report.json)"
    )
    parser.add_argument(
        "--skip-tests",
        action="store_true",
        help="Only run the compression benchmark"
    )

    args = parser.parse_args(argv)

    run_id = generate_run_id()
    started_at = datetime.now()

    print(f"Run ID: {run_id}")
    print(f"Started at: {started_at.isoformat()}")

    tests = None if args.skip_tests else run_pytest(PROJECT_ROOT / "tests")
    benchmark = run_benchmark()

    success = all(r["roundtrip_ok"] for r in benchmark) and (tests is None or tests["success"])

    finished_at = datetime.now()
    duration = (finished_at - started_at).total_seconds()

    report = {
        "run_id": run_id,
        "started_at": started_at.isoformat(),
        "finished_at": finished_at.isoformat(),
        "duration_seconds": round(duration, 6),
        "success": success,
        "environment": get_environment_info(),
        "tests": tests,
        "benchmark": benchmark,
    }

    output_path = Path(args.output) if args.output else generate_output_path()
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        json.dump(report, f, indent=2)
    print(f"\n✅ Report saved to: {output_path}")
    print(f"Duration: {duration:.2f}s")
    print(f"Success: {'✅ YES' if success else '❌ NO'}")

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
