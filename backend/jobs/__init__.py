"""
Batch jobs for CarbonLens.

Jobs:
- run_analysis: Portfolio carbon price analysis and total-based tercile carbon prices from CSV files
"""
