"""
Property-based tests for the flat record decoder.

Hosts the Hypothesis strategies, the record types they target, and the test
entrypoints for the fast CI lane and the nightly fuzz job.
"""
