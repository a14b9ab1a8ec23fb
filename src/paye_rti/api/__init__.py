"""HTTP API for the PAYE RTI engine."""
