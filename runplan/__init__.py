"""runplan - race-preparation running plans from a text-generation backend.

Raw backend output is salvaged, coerced, periodized, de-duplicated and
closed by the goal race before it is returned.
"""
