"""Metric sources, a background measurement worker and summaries of readings."""