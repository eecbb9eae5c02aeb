#!/usr/bin/env python3

import logging
from datetime import date
from typing import Optional, Sequence

from analysis import select_date_range
from pipeline import OutputRecord

logger = logging.getLogger(__name__)


def render_trend_plot(records: Sequence[OutputRecord],
                      output_path: str,
                      no_display: bool = True,
                      start: Optional[date] = None,
                      end: Optional[date] = None) -> bool:
    """
    Draw fat mass and lean mass panels (daily values, measured days, short and
    long trends) and save them to output_path.

    Returns False when nothing falls inside the selected range.
    """
    import matplotlib
    # Use a non-interactive backend only if we are not displaying
    if no_display:
        matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    visible = select_date_range(records, start, end)
    if not visible:
        logger.warning("No data in specified date range %s to %s", start, end)
        return False

    dates = [r.obs_date for r in visible]
    fig, (ax_fat, ax_lean) = plt.subplots(2, 1, figsize=(12, 9), sharex=True)

    panels = [
        (ax_fat, "Fat mass", "interpolated_fat_mass", "observed_fat_mass",
         "fat_trend_short", "fat_trend_long", "#ea580c"),
        (ax_lean, "Lean mass", "interpolated_lean_mass", "observed_lean_mass",
         "lean_trend_short", "lean_trend_long", "#2563eb"),
    ]
    for ax, title, daily_key, observed_key, short_key, long_key, color in panels:
        ax.plot(dates, [getattr(r, daily_key) for r in visible], "-", color=color,
                linewidth=1.0, alpha=0.5, label=f"{title} (daily)")
        observed = [(r.obs_date, getattr(r, observed_key)) for r in visible
                    if getattr(r, observed_key) is not None]
        if observed:
            ax.scatter([d for d, _ in observed], [v for _, v in observed], s=12,
                       color=color, alpha=0.9, label=f"{title} (measured)", zorder=3)
        ax.plot(dates, [getattr(r, short_key) for r in visible], "-", color="#111827",
                linewidth=2, label="Short-term trend")
        ax.plot(dates, [getattr(r, long_key) for r in visible], "--", color="#6b7280",
                linewidth=2, label="Long-term trend")
        ax.set_title(title)
        ax.set_ylabel("Mass")
        ax.grid(True, alpha=0.3)
        ax.legend(loc="best", fontsize=9)

    ax_lean.set_xlabel("Date")
    fig.autofmt_xdate()
    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    if no_display:
        plt.close(fig)
    else:
        plt.show()
    return True
