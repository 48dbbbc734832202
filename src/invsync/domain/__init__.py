"""Domain layer: inventory model, snapshot DTOs and the reconciliation engine."""
