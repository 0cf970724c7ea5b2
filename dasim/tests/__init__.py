"""dasim tests package.

Houses unit/integration tests for:
- unique sample draws and coverage estimates
- the data square and cascading recovery
- the sweep driver, configuration, logging, metrics and CLI
"""
