"""driftive - infrastructure-as-code drift detection with GitHub and Slack reconciliation."""

__version__ = "0.1.0"
