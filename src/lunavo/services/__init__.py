"""Detection, escalation and notification services."""
