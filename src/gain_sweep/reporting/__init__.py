from gain_sweep.reporting.report import render_report, write_report

__all__ = ["render_report", "write_report"]
