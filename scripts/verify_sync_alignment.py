#!/usr/bin/env python3
"""Measure how well line-map interpolation tracks exact forward sync.

Usage:
  1. Start the backend (uvicorn texfeedback.main:app --app-dir backend --port 8000)
  2. Compile a document so a sync file sits next to its root .tex file
  3. python scripts/verify_sync_alignment.py /abs/path/to/main.tex

Steps:
  1. Fetch the line map (one anchor per recorded line)
  2. Ask forward sync for the exact position of every source line
  3. Estimate the same position by interpolating between anchors
  4. Report the deviation
"""

import asyncio
import os
import sys

import httpx

BASE_URL = os.environ.get("TEXFEEDBACK_URL", "http://localhost:8000/api/v1")


def interpolate_position(entries: list[dict], line: int) -> dict:
    """Nearest anchors around *line*; linear in y when both sit on one page."""
    lower_idx = 0
    for i, e in enumerate(entries):
        if e["line"] <= line:
            lower_idx = i
        else:
            break

    upper_idx = len(entries) - 1
    for i in range(len(entries) - 1, -1, -1):
        if entries[i]["line"] >= line:
            upper_idx = i
        else:
            break

    lower = entries[lower_idx]
    upper = entries[upper_idx]

    if lower_idx == upper_idx or lower["page"] != upper["page"]:
        use_lower = (line - lower["line"]) <= (upper["line"] - line)
        return lower if use_lower else upper

    t = (line - lower["line"]) / (upper["line"] - lower["line"])
    return {"page": lower["page"], "y": lower["y"] + t * (upper["y"] - lower["y"])}


def count_source_lines(path: str) -> int:
    with open(path, encoding="utf-8", errors="replace") as f:
        return sum(1 for _ in f)


async def main():
    if len(sys.argv) < 2:
        print("usage: verify_sync_alignment.py /abs/path/to/main.tex")
        sys.exit(2)
    source_path = os.path.abspath(sys.argv[1])
    total_lines = count_source_lines(source_path)

    async with httpx.AsyncClient(timeout=30) as client:
        r = await client.get(f"{BASE_URL}/synctex/linemap", params={"file": source_path})
        r.raise_for_status()
        entries = sorted(r.json()["line_map"], key=lambda e: e["line"])
        if not entries:
            print(f"No SyncTeX data for {source_path}. Compile it first.")
            sys.exit(1)

        print(f"\nline map entries: {len(entries)} (source lines: {total_lines})")
        print(f"Line range: {entries[0]['line']}-{entries[-1]['line']}")
        print(f"Pages covered: {sorted(set(e['page'] for e in entries))}")

        deviations = []
        page_mismatches = 0
        errors = 0

        print(f"\nQuerying forward sync for lines 1-{total_lines}...")

        for line in range(1, total_lines + 1):
            try:
                r = await client.get(
                    f"{BASE_URL}/synctex/forward",
                    params={"file": source_path, "line": line},
                )
            except httpx.HTTPError as e:
                errors += 1
                if errors <= 3:
                    print(f"  Error at line {line}: {e}")
                continue
            if r.status_code == 404:
                continue
            if r.status_code != 200:
                errors += 1
                continue

            exact = r.json()
            interp = interpolate_position(entries, line)
            mismatch = exact["page"] != interp["page"]
            if mismatch:
                page_mismatches += 1
            deviations.append({
                "line": line,
                "exact_page": exact["page"],
                "interp_page": interp["page"],
                "exact_y": exact["y"],
                "interp_y": interp["y"],
                "y_dev": None if mismatch else abs(exact["y"] - interp["y"]),
                "page_mismatch": mismatch,
            })

            if line % 50 == 0:
                print(f"  ... line {line}/{total_lines}")

        same_page = [d for d in deviations if not d["page_mismatch"]]
        y_devs = [d["y_dev"] for d in same_page]

        print(f"\n{'='*60}")
        print("ALIGNMENT VERIFICATION REPORT")
        print(f"{'='*60}")
        print(f"Total lines tested: {len(deviations)}")
        print(f"Lines without sync data: {total_lines - len(deviations) - errors}")
        print(f"API errors: {errors}")
        print(f"Page mismatches: {page_mismatches}")

        avg_dev = None
        if y_devs:
            avg_dev = sum(y_devs) / len(y_devs)
            max_dev = max(y_devs)
            median_dev = sorted(y_devs)[len(y_devs) // 2]
            within_14pt = sum(1 for d in y_devs if d <= 14)  # one line height
            within_28pt = sum(1 for d in y_devs if d <= 28)

            print("\nY deviation (same page, PDF points):")
            print(f"  Average: {avg_dev:.1f} pt")
            print(f"  Median:  {median_dev:.1f} pt")
            print(f"  Max:     {max_dev:.1f} pt")
            print(f"  Within 1 line (14pt): {within_14pt}/{len(y_devs)} ({100*within_14pt/len(y_devs):.0f}%)")
            print(f"  Within 2 lines (28pt): {within_28pt}/{len(y_devs)} ({100*within_28pt/len(y_devs):.0f}%)")

            worst = sorted(same_page, key=lambda d: d["y_dev"], reverse=True)[:10]
            print("\nTop 10 worst deviations:")
            print(f"  {'Line':>5}  {'Page':>4}  {'Exact Y':>8}  {'Interp Y':>8}  {'Dev':>6}")
            for d in worst:
                print(f"  {d['line']:>5}  {d['exact_page']:>4}  {d['exact_y']:>8.1f}  {d['interp_y']:>8.1f}  {d['y_dev']:>6.1f}")

        if page_mismatches:
            print("\nPage mismatch examples:")
            for d in [d for d in deviations if d["page_mismatch"]][:10]:
                print(f"  Line {d['line']}: exact page={d['exact_page']}, interp page={d['interp_page']}")

        print(f"\n{'='*60}")
        if avg_dev is not None and avg_dev < 14 and page_mismatches == 0:
            print("RESULT: GOOD (average deviation under one line, no page mismatches)")
        elif avg_dev is not None and avg_dev < 28:
            print("RESULT: ACCEPTABLE (average deviation under two lines)")
        else:
            print("RESULT: NEEDS IMPROVEMENT")
        print(f"{'='*60}")


if __name__ == "__main__":
    asyncio.run(main())
