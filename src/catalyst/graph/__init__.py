"""Graph domain: Tuist graph model, snapshot, and target resolution."""
