"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from datetime import date
from typing import Any

from .analytics import productivity_score
from .models import DomainTotals


class SummaryPrinter:
    """Render human-readable summaries in the console."""

    def print_day(self, day: date, totals: dict[str, DomainTotals]) -> None:
        if not totals:
            print("No activity recorded for the selected day.")
            return

        by_category: dict[str, int] = {}
        for item in totals.values():
            by_category[item.category.value] = by_category.get(item.category.value, 0) + item.total_time
        total = sum(by_category.values())
        productive = by_category.get("productive", 0)
        score = productivity_score(productive, total)

        print(f"Summary for {day.isoformat()}")
        print("-" * 40)
        print(f"Total time:        {format_duration(total)}")
        print(f"Productive time:   {format_duration(productive)}")
        print(f"Unproductive time: {format_duration(by_category.get('unproductive', 0))}")
        print(f"Productivity:      {score}%")
        print()

        ranked = sorted(totals.items(), key=lambda item: item[1].total_time, reverse=True)
        print("Top sites:")
        for domain, item in ranked[:5]:
            print(
                f"  {domain[:30]:<30} {item.category.value:<12} "
                f"{format_duration(item.total_time)} ({item.visits} visits)"
            )

    def print_summary(self, summary: dict[str, Any], period: str) -> None:
        print(f"Summary ({period})")
        print("-" * 40)
        print(f"Total time:      {format_duration(summary['totalTime'])}")
        print(f"Productive time: {format_duration(summary['productiveTime'])}")
        print(f"Productivity:    {summary['productivityScore']}%")
        breakdown = summary["categoryBreakdown"]
        if breakdown:
            print()
            for category, item in breakdown.items():
                print(
                    f"  {category:<12} {format_duration(item['totalTime'])} "
                    f"{item['entryCount']} entries, {item['uniqueWebsiteCount']} sites"
                )
        if summary["topWebsites"]:
            print()
            print("Top websites:")
            for site in summary["topWebsites"]:
                print(f"  {site['hostname'][:30]:<30} {format_duration(site['totalTime'])}")


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
