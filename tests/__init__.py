"""
Knit Planner test suite.

Run all tests: pytest
Run one module: pytest tests/unit/test_schedule_service.py -v
"""
