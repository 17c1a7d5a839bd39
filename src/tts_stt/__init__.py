"""Speech input/output adapters for navigation guidance."""
