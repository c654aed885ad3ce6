"""Payment session orchestration and Stripe webhook reconciliation for Delvind."""

__version__ = "0.1.0"
