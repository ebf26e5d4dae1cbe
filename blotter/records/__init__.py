"""Records: citations and arrest reports and the stores that persist them.

- Models and invariants (roster/charge arrays, totals, warrant derivation)
- Whole-file JSON persistence with atomic replace
- Id strategies and the lifetime "ever issued" counters
- The penal code table
"""
