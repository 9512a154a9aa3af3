"""SafePath route safety-scoring engine."""
