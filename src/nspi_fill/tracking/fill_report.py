"""FillReport: collects per-region results and writes run reports."""

from __future__ import annotations

import csv
import json
import os
from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from nspi_fill.tracking.region_result import RegionResult


class FillReport:
    """Centralized region tracking and reporting."""

    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = output_dir
        self.results: List[RegionResult] = []
        self.start_time = datetime.now()

    def add_result(self, result: RegionResult) -> None:
        self.results.append(result)

    def sorted_results(self) -> List[RegionResult]:
        return sorted(self.results, key=lambda r: r.cloud_id)

    def counts(self) -> Dict[str, int]:
        """Number of regions per status."""
        out = {"success": 0, "skipped": 0, "failed": 0}
        for r in self.results:
            out[r.status] = out.get(r.status, 0) + 1
        return out

    # ------------------------------------------------------------------
    # Report generation
    # ------------------------------------------------------------------

    def save_reports(self) -> None:
        """Save JSON, CSV, text, and failed-regions reports."""
        if self.output_dir is None:
            raise ValueError("FillReport has no output_dir; cannot save reports")
        os.makedirs(self.output_dir, exist_ok=True)
        timestamp = self.start_time.strftime("%Y%m%d_%H%M%S")
        results = self.sorted_results()

        # 1. Detailed JSON
        json_path = os.path.join(self.output_dir, f"fill_report_{timestamp}.json")
        with open(json_path, "w") as f:
            json.dump([r.to_dict() for r in results], f, indent=2, default=str)

        # 2. CSV summary
        csv_path = os.path.join(self.output_dir, f"fill_summary_{timestamp}.csv")
        self._save_csv_summary(csv_path, results)

        # 3. Human-readable text
        txt_path = os.path.join(self.output_dir, f"fill_report_{timestamp}.txt")
        self._save_text_report(txt_path, results)

        # 4. Failed regions only
        failed = [r for r in results if r.status == "failed"]
        if failed:
            failed_path = os.path.join(
                self.output_dir, f"failed_regions_{timestamp}.json"
            )
            with open(failed_path, "w") as f:
                json.dump([r.to_dict() for r in failed], f, indent=2, default=str)

        logger.info(f"Reports saved to {self.output_dir}/")

    def _save_csv_summary(self, path: str, results: List[RegionResult]) -> None:
        fieldnames = [
            "cloud_id", "status", "up_row", "down_row", "left_col", "right_col",
            "n_targets", "n_weighted", "n_fallback", "n_out_of_range",
            "duration_sec", "error_message",
        ]
        with open(path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for r in results:
                window = r.window or (None, None, None, None)
                writer.writerow({
                    "cloud_id": r.cloud_id,
                    "status": r.status,
                    "up_row": window[0],
                    "down_row": window[1],
                    "left_col": window[2],
                    "right_col": window[3],
                    "n_targets": r.n_targets,
                    "n_weighted": r.n_weighted,
                    "n_fallback": r.n_fallback,
                    "n_out_of_range": r.n_out_of_range,
                    "duration_sec": r.duration_sec,
                    "error_message": (
                        r.error_message[:100] if r.error_message else None
                    ),
                })

    def _save_text_report(self, path: str, results: List[RegionResult]) -> None:
        total = len(results)
        if total == 0:
            with open(path, "w") as f:
                f.write("No cloud regions were processed.\n")
            return

        counts = self.counts()
        n_targets = sum(r.n_targets for r in results)
        n_weighted = sum(r.n_weighted for r in results)
        n_fallback = sum(r.n_fallback for r in results)

        durations = [r.duration_sec for r in results if r.duration_sec]
        avg_dur = sum(durations) / len(durations) if durations else 0
        max_dur = max(durations) if durations else 0

        with open(path, "w") as f:
            f.write("=" * 60 + "\n")
            f.write("CLOUD FILL REPORT\n")
            f.write(f"Generated: {datetime.now():%Y-%m-%d %H:%M:%S}\n")
            f.write("=" * 60 + "\n\n")

            f.write("REGIONS\n")
            f.write("-" * 40 + "\n")
            f.write(f"Total Regions:     {total}\n")
            for status in ("success", "skipped", "failed"):
                cnt = counts.get(status, 0)
                f.write(f"{status.capitalize() + ':':<19}{cnt} ({cnt / total * 100:.1f}%)\n")
            f.write(f"\nAvg Duration:   {avg_dur:.3f} sec\n")
            f.write(f"Max Duration:   {max_dur:.3f} sec\n\n")

            f.write("PIXELS\n")
            f.write("-" * 40 + "\n")
            f.write(f"Targets:           {n_targets}\n")
            if n_targets:
                f.write(f"Weighted:          {n_weighted} ({n_weighted / n_targets * 100:.1f}%)\n")
                f.write(f"Fallback:          {n_fallback} ({n_fallback / n_targets * 100:.1f}%)\n")

            problem = [r for r in results if r.status != "success"]
            if problem:
                f.write("\nUNFILLED REGIONS DETAIL\n")
                f.write("-" * 40 + "\n")
                for r in problem[:20]:
                    f.write(f"\nCloud ID: {r.cloud_id}\n")
                    f.write(f"  Status: {r.status} | Window: {r.window}\n")
                    f.write(f"  Error: {r.error_message[:200] if r.error_message else 'None'}\n")
                if len(problem) > 20:
                    f.write(f"\n... and {len(problem) - 20} more regions\n")

    def print_summary(self) -> None:
        """Log a quick summary."""
        total = len(self.results)
        if total == 0:
            logger.info("No cloud regions were processed.")
            return

        counts = self.counts()
        n_targets = sum(r.n_targets for r in self.results)
        n_fallback = sum(r.n_fallback for r in self.results)
        logger.info(
            f"Fill summary: {counts['success']} filled, {counts['skipped']} skipped, "
            f"{counts['failed']} failed out of {total} regions"
        )
        logger.info(f"  {n_targets} target pixels, {n_fallback} via mean-difference fallback")
