"""PyMemSim — a variable-partition memory allocation simulator."""
